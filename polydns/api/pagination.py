"""
Pagination strategies for provider list endpoints
"""

from typing import Any, Callable, Dict, Iterator, List, Optional, Sequence, Union

from polydns.api.http import RequestExecutor
from polydns.utils.logger import get_logger


logger = get_logger(__name__)

DEFAULT_PAGE_SIZE = 100
DEFAULT_MAX_PAGES = 1000

KeyPath = Union[str, Sequence[str], None]


def dig(data: Any, *keys: str) -> Any:
    """
    Walk nested dictionaries, returning None at the first missing key.
    
    Example:
        dig({"meta": {"total": 3}}, "meta", "total")  -> 3
    """
    for key in keys:
        if not isinstance(data, dict):
            return None
        data = data.get(key)
    return data


def _as_path(key: KeyPath) -> Sequence[str]:
    if key is None:
        return ()
    if isinstance(key, str):
        return (key,)
    return tuple(key)


def _as_int(value: Any) -> Optional[int]:
    try:
        return int(value) if value is not None else None
    except (TypeError, ValueError):
        return None


class OffsetPaginator:
    """
    Page/per-page pagination.
    
    Stops on an empty page, once the running count reaches the reported
    total, once the reported page count is reached, or at ``max_pages``.
    Missing totals are treated as unbounded.
    """
    
    def __init__(
        self,
        executor: RequestExecutor,
        path: str,
        items_key: KeyPath,
        params: Optional[Dict[str, Any]] = None,
        page_size: int = DEFAULT_PAGE_SIZE,
        max_pages: int = DEFAULT_MAX_PAGES,
        total_items: KeyPath = None,
        total_pages: KeyPath = None,
        identity: Optional[Callable[[Dict[str, Any]], Any]] = None,
        page_param: str = "page",
        size_param: str = "per_page"
    ):
        self.executor = executor
        self.path = path
        self.items_key = _as_path(items_key)
        self.params = dict(params or {})
        self.page_size = page_size
        self.max_pages = max_pages
        self.total_items = _as_path(total_items)
        self.total_pages = _as_path(total_pages)
        self.identity = identity
        self.page_param = page_param
        self.size_param = size_param
        self.pages_fetched = 0
    
    def __iter__(self) -> Iterator[Dict[str, Any]]:
        fetched = 0
        seen = set()
        self.pages_fetched = 0
        
        for page in range(1, self.max_pages + 1):
            params = {**self.params, self.page_param: page, self.size_param: self.page_size}
            data = self.executor.execute("GET", self.path, params=params)
            self.pages_fetched += 1
            
            items = dig(data, *self.items_key) if self.items_key else data
            if not items:
                return
            
            for item in items:
                if self.identity is not None:
                    key = self.identity(item)
                    if key in seen:
                        continue
                    seen.add(key)
                fetched += 1
                yield item
            
            total = _as_int(dig(data, *self.total_items)) if self.total_items else None
            if total is not None and fetched >= total:
                return
            pages = _as_int(dig(data, *self.total_pages)) if self.total_pages else None
            if pages is not None and page >= pages:
                return
        
        logger.warning(f"Stopped paging {self.path} at the {self.max_pages}-page ceiling")
    
    def all(self) -> List[Dict[str, Any]]:
        return list(self)


class TokenPaginator:
    """Follows an opaque next-page token until the provider stops returning one."""
    
    def __init__(
        self,
        executor: RequestExecutor,
        path: str,
        items_key: KeyPath,
        params: Optional[Dict[str, Any]] = None,
        token_param: str = "pageToken",
        next_token_key: str = "nextPageToken",
        max_pages: int = DEFAULT_MAX_PAGES
    ):
        self.executor = executor
        self.path = path
        self.items_key = _as_path(items_key)
        self.params = dict(params or {})
        self.token_param = token_param
        self.next_token_key = next_token_key
        self.max_pages = max_pages
        self.pages_fetched = 0
    
    def __iter__(self) -> Iterator[Dict[str, Any]]:
        token = None
        self.pages_fetched = 0
        
        for _ in range(self.max_pages):
            params = dict(self.params)
            if token:
                params[self.token_param] = token
            data = self.executor.execute("GET", self.path, params=params)
            self.pages_fetched += 1
            
            for item in (dig(data, *self.items_key) or []):
                yield item
            
            token = dig(data, self.next_token_key)
            if not token:
                return
        
        logger.warning(f"Stopped paging {self.path} at the {self.max_pages}-page ceiling")
    
    def all(self) -> List[Dict[str, Any]]:
        return list(self)
