# SPDX-License-Identifier: Apache-2.0

"""
Middleware package for request processing.

Authentication, CORS, request validation and error rendering for the
registration API.
"""
