"""
WordPress REST API client (wp-json/wp/v2) for publishing city pages.

Authenticates with a WordPress application password over HTTP basic auth.
Lookups that 404 return None; every other failure raises PublishServiceError
carrying the message WordPress sent back.
"""
import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field, replace
from typing import Any, Dict, List, Optional

import requests
from django.conf import settings
from requests.auth import HTTPBasicAuth

from citypages_backend.exceptions import PublishServiceError

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 30.0  # seconds
MAX_WORKERS = 5
PER_PAGE = 100


@dataclass
class CreatePageParams:
    title: str
    content: str
    slug: str
    status: str = 'draft'
    parent_id: Optional[int] = None
    meta_description: Optional[str] = None
    focus_keyword: Optional[str] = None
    excerpt: str = ''
    featured_image: Optional[int] = None
    categories: List[int] = field(default_factory=list)
    tags: List[int] = field(default_factory=list)

    def to_payload(self) -> Dict[str, Any]:
        payload = {
            'title': self.title,
            'content': self.content,
            'slug': self.slug,
            'status': self.status or 'draft',
            'parent': self.parent_id or 0,
            'excerpt': self.excerpt or '',
            'categories': list(self.categories),
            'tags': list(self.tags),
            'featured_media': self.featured_image or 0,
        }
        # Yoast SEO meta, only when there is something to set
        if self.meta_description or self.focus_keyword:
            payload['yoast_head_json'] = {
                'description': self.meta_description,
                'focus_keyword': self.focus_keyword,
            }
        return payload


# update_page keyword -> REST field
UPDATE_FIELDS = {
    'title': 'title',
    'content': 'content',
    'slug': 'slug',
    'status': 'status',
    'parent_id': 'parent',
    'excerpt': 'excerpt',
    'categories': 'categories',
    'tags': 'tags',
    'featured_image': 'featured_media',
}


def _error_message(response) -> str:
    try:
        body = response.json()
    except ValueError:
        return response.text[:500] or f"HTTP {response.status_code}"
    if isinstance(body, dict) and body.get('message'):
        return body['message']
    return f"HTTP {response.status_code}"


class WordPressClient:
    """
    Thin wrapper over the WordPress pages/categories/tags endpoints.

    client = WordPressClient.from_settings()
    page = client.create_page(CreatePageParams(title='...', content='...', slug='austin-tx'))
    """

    def __init__(self, site_url: str, username: str, app_password: str,
                 timeout: float = DEFAULT_TIMEOUT, max_workers: int = MAX_WORKERS):
        if not site_url or not username or not app_password:
            raise PublishServiceError("Missing WordPress configuration")
        self.site_url = site_url.rstrip('/')
        self.base_url = f"{self.site_url}/wp-json/wp/v2"
        self.auth = HTTPBasicAuth(username, app_password)
        self.timeout = timeout
        self.max_workers = max_workers

    @classmethod
    def from_settings(cls) -> 'WordPressClient':
        return cls(
            settings.WORDPRESS_SITE_URL,
            settings.WORDPRESS_USERNAME,
            settings.WORDPRESS_APP_PASSWORD,
            timeout=getattr(settings, 'WORDPRESS_TIMEOUT', DEFAULT_TIMEOUT),
        )

    # ─────────────────────────────────────────────────────────
    # Transport
    # ─────────────────────────────────────────────────────────

    def _send(self, method: str, path: str, **kwargs) -> requests.Response:
        url = f"{self.base_url}{path}"
        try:
            return requests.request(
                method, url, auth=self.auth, timeout=self.timeout,
                headers={'Content-Type': 'application/json'}, **kwargs
            )
        except requests.RequestException as exc:
            logger.error("WordPress %s %s error: %s", method, url, exc)
            raise PublishServiceError(f"WordPress request failed: {exc}") from exc

    def _request(self, method: str, path: str, action: str, **kwargs):
        response = self._send(method, path, **kwargs)
        if response.status_code >= 400:
            message = _error_message(response)
            logger.warning(
                "WordPress %s %s failed: HTTP %s: %s",
                method, path, response.status_code, message,
            )
            raise PublishServiceError(
                f"Failed to {action}: {message}",
                status_code=response.status_code,
                response_body=response.text[:500],
            )
        if not response.content:
            return None
        return self._decode(response, action)

    def _decode(self, response: requests.Response, action: str):
        try:
            return response.json()
        except ValueError as exc:
            logger.warning("WordPress returned non-JSON reply: HTTP %s", response.status_code)
            raise PublishServiceError(
                f"Failed to {action}: invalid JSON response",
                status_code=response.status_code,
                response_body=response.text[:500],
            ) from exc

    def _lookup(self, path: str, **kwargs):
        """GET that maps 404 to None."""
        response = self._send('GET', path, **kwargs)
        if response.status_code == 404:
            return None
        if response.status_code >= 400:
            message = _error_message(response)
            raise PublishServiceError(
                f"Failed to fetch page: {message}",
                status_code=response.status_code,
                response_body=response.text[:500],
            )
        return self._decode(response, 'fetch page')

    # ─────────────────────────────────────────────────────────
    # Pages
    # ─────────────────────────────────────────────────────────

    def create_page(self, params: CreatePageParams) -> Dict[str, Any]:
        page = self._request('POST', '/pages', 'create page', json=params.to_payload())
        logger.info("Created WordPress page %s (%s)", page.get('id'), params.slug)
        return page

    def update_page(self, page_id: int, **fields) -> Dict[str, Any]:
        unknown = set(fields) - set(UPDATE_FIELDS)
        if unknown:
            raise TypeError(f"Unknown page fields: {', '.join(sorted(unknown))}")
        payload = {UPDATE_FIELDS[k]: v for k, v in fields.items() if v is not None}
        return self._request('POST', f'/pages/{page_id}', 'update page', json=payload)

    def get_page(self, page_id: int) -> Optional[Dict[str, Any]]:
        return self._lookup(f'/pages/{page_id}')

    def get_page_by_slug(self, slug: str) -> Optional[Dict[str, Any]]:
        pages = self._lookup('/pages', params={'slug': slug})
        if not pages:
            return None
        return pages[0]

    def delete_page(self, page_id: int, force: bool = False) -> bool:
        self._request('DELETE', f'/pages/{page_id}', 'delete page',
                      params={'force': 'true' if force else 'false'})
        return True

    def publish_page(self, page_id: int) -> Dict[str, Any]:
        return self.update_page(page_id, status='publish')

    def create_page_hierarchy(self, parent: CreatePageParams,
                              children: List[CreatePageParams]) -> Dict[str, Any]:
        """
        Create the parent, then every child under it concurrently.

        Returns { "parent": {...}, "children": [...], "failed": [{slug, error}] }.
        A failing child does not stop its siblings.
        """
        parent_page = self.create_page(parent)

        def create_child(child: CreatePageParams):
            return self.create_page(replace(child, parent_id=parent_page['id']))

        created, failed = [], []
        for child, outcome in zip(children, self._fan_out(create_child, children)):
            if isinstance(outcome, PublishServiceError):
                failed.append({'slug': child.slug, 'error': outcome.message})
            else:
                created.append(outcome)
        return {'parent': parent_page, 'children': created, 'failed': failed}

    def bulk_publish(self, page_ids: List[int]) -> Dict[str, List[int]]:
        """Publish pages concurrently; returns { "success": [ids], "failed": [ids] }."""
        success, failed = [], []
        for page_id, outcome in zip(page_ids, self._fan_out(self.publish_page, page_ids)):
            if isinstance(outcome, PublishServiceError):
                failed.append(page_id)
            else:
                success.append(page_id)
        return {'success': success, 'failed': failed}

    def _fan_out(self, func, items) -> list:
        """Run func over items in a thread pool; results (or errors) in input order."""
        items = list(items)
        if not items:
            return []

        def call(item):
            try:
                return func(item)
            except PublishServiceError as exc:
                return exc

        with ThreadPoolExecutor(max_workers=min(self.max_workers, len(items))) as pool:
            return list(pool.map(call, items))

    # ─────────────────────────────────────────────────────────
    # Site
    # ─────────────────────────────────────────────────────────

    def test_connection(self) -> bool:
        try:
            self._request('GET', '/', 'connect')
            return True
        except PublishServiceError as exc:
            logger.warning("WordPress connection test failed: %s", exc.message)
            return False

    def get_categories(self) -> List[Dict[str, Any]]:
        return self._request('GET', '/categories', 'fetch categories', params={'per_page': PER_PAGE})

    def create_category(self, name: str, description: str = '') -> Dict[str, Any]:
        return self._request('POST', '/categories', 'create category',
                             json={'name': name, 'description': description or ''})

    def get_tags(self) -> List[Dict[str, Any]]:
        return self._request('GET', '/tags', 'fetch tags', params={'per_page': PER_PAGE})

    def create_tag(self, name: str, description: str = '') -> Dict[str, Any]:
        return self._request('POST', '/tags', 'create tag',
                             json={'name': name, 'description': description or ''})
