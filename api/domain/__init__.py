# SPDX-License-Identifier: Apache-2.0

"""
Domain logic package for the social registration service.

Masks, validation rules, the registration wizard and the dashboard table
engine. Nothing here talks to a database or to HTTP.
"""
