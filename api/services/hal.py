# -*- coding: utf-8 -*-
# SPDX-License-Identifier: Apache-2.0

"""
HAL (Hypertext Application Language) response formatting utilities.
Implements HATEOAS responses with conditional affordance links.
"""

from typing import Dict, List, Any, Optional
from urllib.parse import urljoin, urlencode
import math

from models.responses import HalLink

PROBLEM_BASE_URL = "https://api.cadastro-social.org/problems"


class HalLinkBuilder:
    """Builder for HAL links with proper URL construction."""

    def __init__(self, base_url: str):
        self.base_url = base_url.rstrip('/') + '/'

    def build_link(
        self,
        path: str,
        method: str = "GET",
        content_type: Optional[str] = None,
        title: Optional[str] = None,
        templated: bool = False
    ) -> HalLink:
        """Build a HAL link with proper URL construction."""
        href = urljoin(self.base_url, path.lstrip('/'))

        return HalLink(
            href=href,
            method=method,
            type=content_type,
            title=title,
            templated=templated
        )

    def build_self_link(self, resource_path: str) -> HalLink:
        return self.build_link(resource_path, title="Self")

    def build_collection_link(self, collection_path: str) -> HalLink:
        return self.build_link(collection_path, title="Collection")

    def build_action_link(
        self,
        resource_path: str,
        action: str,
        method: str = "POST",
        title: Optional[str] = None
    ) -> HalLink:
        """Build action link for a resource."""
        return self.build_link(
            f"{resource_path}/{action}",
            method=method,
            content_type="application/json",
            title=title or action.title()
        )


class PaginationLinkBuilder:
    """Builder for pagination links in HAL collections."""

    def __init__(self, base_url: str):
        self.link_builder = HalLinkBuilder(base_url)

    def _page_link(self, base_path: str, page: int, params: Dict[str, Any], title: str) -> HalLink:
        query = urlencode({**params, 'page': page})
        return self.link_builder.build_link(f"{base_path}?{query}", title=title)

    def build_pagination_links(
        self,
        base_path: str,
        current_page: int,
        total_pages: int,
        query_params: Optional[Dict[str, Any]] = None
    ) -> Dict[str, HalLink]:
        """Build pagination links for a collection."""
        params = {k: v for k, v in (query_params or {}).items() if v not in (None, "")}
        links = {'self': self._page_link(base_path, current_page, params, "Current page")}

        if current_page > 1:
            links['first'] = self._page_link(base_path, 1, params, "First page")
            links['prev'] = self._page_link(base_path, current_page - 1, params, "Previous page")

        if current_page < total_pages:
            links['next'] = self._page_link(base_path, current_page + 1, params, "Next page")
            links['last'] = self._page_link(base_path, total_pages, params, "Last page")

        return links


class AffordanceLinkBuilder:
    """Builder for conditional affordance links based on resource state."""

    def __init__(self, base_url: str):
        self.link_builder = HalLinkBuilder(base_url)

    def build_registration_affordances(self, registration_id: str) -> Dict[str, HalLink]:
        """Links for a registration seen by staff."""
        base_path = f"/api/admin/registrations/{registration_id}"

        return {
            'self': self.link_builder.build_self_link(base_path),
            'collection': self.link_builder.build_collection_link("/api/admin/registrations"),
            'edit': self.link_builder.build_link(
                base_path,
                method="PATCH",
                content_type="application/json",
                title="Edit registration"
            ),
            'delete': self.link_builder.build_link(
                base_path,
                method="DELETE",
                title="Delete registration"
            ),
        }

    def build_draft_affordances(
        self,
        session_id: str,
        is_first_step: bool,
        is_last_step: bool,
        is_submitting: bool = False
    ) -> Dict[str, HalLink]:
        """Links for a wizard draft, offering only the transitions its step allows."""
        base_path = f"/api/registrations/drafts/{session_id}"
        links = {
            'self': self.link_builder.build_self_link(base_path),
            'fields': self.link_builder.build_action_link(base_path, "fields", method="PATCH", title="Update field"),
            'blur': self.link_builder.build_action_link(base_path, "blur", title="Validate field"),
            'discard': self.link_builder.build_link(base_path, method="DELETE", title="Discard draft"),
        }

        if not is_first_step:
            links['previous'] = self.link_builder.build_action_link(base_path, "previous", title="Previous step")

        if is_last_step:
            if not is_submitting:
                links['submit'] = self.link_builder.build_action_link(base_path, "submit", title="Submit registration")
        else:
            links['next'] = self.link_builder.build_action_link(base_path, "next", title="Next step")

        return links


class HalResponseBuilder:
    """Main HAL response builder."""

    def __init__(self, base_url: str):
        self.base_url = base_url.rstrip('/')
        self.link_builder = HalLinkBuilder(base_url)
        self.pagination_builder = PaginationLinkBuilder(base_url)
        self.affordance_builder = AffordanceLinkBuilder(base_url)

    @staticmethod
    def _dump_links(links: Dict[str, HalLink]) -> Dict[str, Dict[str, Any]]:
        return {rel: link.model_dump(exclude_none=True) for rel, link in links.items()}

    def build_resource_response(self, data: Dict[str, Any], links: Dict[str, HalLink]) -> Dict[str, Any]:
        response = dict(data)
        response['_links'] = self._dump_links(links)
        return response

    def build_collection_response(
        self,
        items: List[Dict[str, Any]],
        total: int,
        page: int,
        page_size: int,
        collection_path: str,
        query_params: Optional[Dict[str, Any]] = None
    ) -> Dict[str, Any]:
        """Build a HAL collection response with pagination links."""
        total_pages = max(1, math.ceil(total / page_size)) if page_size > 0 else 1

        pagination_links = self.pagination_builder.build_pagination_links(
            collection_path,
            page,
            total_pages,
            query_params
        )

        return {
            'total': total,
            'page': page,
            'page_size': page_size,
            'total_pages': total_pages,
            '_links': self._dump_links(pagination_links),
            '_embedded': {
                'items': items
            }
        }

    def build_error_response(
        self,
        error_type: str,
        title: str,
        status: int,
        detail: str,
        instance: str,
        validation_errors: Optional[List[Dict[str, Any]]] = None
    ) -> Dict[str, Any]:
        """Build RFC 7807 compliant error response with HAL links."""
        error_response = {
            'type': f"{PROBLEM_BASE_URL}/{error_type}",
            'title': title,
            'status': status,
            'detail': detail,
            'instance': instance
        }

        if validation_errors:
            error_response['errors'] = validation_errors

        links = {
            'help': self.link_builder.build_link(
                f"/docs/errors#{error_type}",
                title="Error documentation"
            )
        }

        if error_type == "validation-error":
            links['schema'] = self.link_builder.build_link("/openapi/openapi.json", title="API schema")
        elif error_type == "authentication-required":
            links['login'] = self.link_builder.build_link(
                "/api/auth/login",
                method="POST",
                content_type="application/json",
                title="Login"
            )

        error_response['_links'] = self._dump_links(links)
        return error_response


class HalFormatter:
    """High-level HAL formatter with convenience methods."""

    def __init__(self, base_url: str):
        self.builder = HalResponseBuilder(base_url)

    def format_registration(self, registration: Dict[str, Any]) -> Dict[str, Any]:
        links = self.builder.affordance_builder.build_registration_affordances(registration['id'])
        return self.builder.build_resource_response(registration, links)

    def format_registration_collection(
        self,
        registrations: List[Dict[str, Any]],
        total: int,
        page: int,
        page_size: int,
        filters: Optional[Dict[str, Any]] = None
    ) -> Dict[str, Any]:
        """Format a page of registrations with HAL links."""
        return self.builder.build_collection_response(
            [self.format_registration(r) for r in registrations],
            total,
            page,
            page_size,
            "/api/admin/registrations",
            filters
        )

    def format_draft(self, state: Dict[str, Any]) -> Dict[str, Any]:
        """Format a wizard draft state with its available transitions."""
        links = self.builder.affordance_builder.build_draft_affordances(
            state['session_id'],
            state['is_first_step'],
            state['is_last_step'],
            state.get('status') == "submitting"
        )
        return self.builder.build_resource_response(state, links)

    def format_validation_error(
        self,
        detail: str,
        instance: str,
        validation_errors: List[Dict[str, Any]]
    ) -> Dict[str, Any]:
        return self.builder.build_error_response(
            "validation-error", "Validation Error", 400, detail, instance, validation_errors
        )

    def format_authentication_error(self, detail: str, instance: str) -> Dict[str, Any]:
        return self.builder.build_error_response(
            "authentication-required", "Authentication Required", 401, detail, instance
        )

    def format_authorization_error(self, detail: str, instance: str) -> Dict[str, Any]:
        return self.builder.build_error_response(
            "insufficient-permissions", "Insufficient Permissions", 403, detail, instance
        )

    def format_not_found_error(self, detail: str, instance: str) -> Dict[str, Any]:
        return self.builder.build_error_response(
            "resource-not-found", "Resource Not Found", 404, detail, instance
        )

    def format_conflict_error(self, detail: str, instance: str) -> Dict[str, Any]:
        return self.builder.build_error_response(
            "resource-conflict", "Resource Conflict", 409, detail, instance
        )

    def format_server_error(self, detail: str, instance: str) -> Dict[str, Any]:
        return self.builder.build_error_response(
            "internal-server-error", "Internal Server Error", 500, detail, instance
        )


def create_hal_formatter(base_url: str) -> HalFormatter:
    """Create a HAL formatter instance."""
    return HalFormatter(base_url)
