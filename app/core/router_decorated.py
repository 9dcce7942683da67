from typing import Any, Callable

from fastapi import APIRouter as FastAPIRouter


class APIRouter(FastAPIRouter):
    """APIRouter that answers both with and without a trailing slash.

    The alternate path is registered without showing up in the schema.
    """

    def api_route(self, path: str, *, include_in_schema: bool = True, **kwargs: Any) -> Callable:
        if path.endswith("/") and len(path) > 1:
            path = path[:-1]

        add_path = super().api_route(path, include_in_schema=include_in_schema, **kwargs)

        alternate_path = path + "/" if path != "/" else None
        add_alternate_path = (
            super().api_route(alternate_path, include_in_schema=False, **kwargs)
            if alternate_path
            else None
        )

        def decorator(func: Callable) -> Callable:
            if add_alternate_path is not None:
                add_alternate_path(func)
            return add_path(func)

        return decorator
