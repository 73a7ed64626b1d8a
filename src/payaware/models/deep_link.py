"""Deep-link parsing.

The app registers a custom scheme (``payawareapp://reset-password?token=…``)
and an https prefix (``https://pay-aware.ru/reset-password?token=…``).
For custom schemes the first "path" segment sits in the netloc, so both
forms are normalised to the same ``path``.
"""

from __future__ import annotations

from urllib.parse import parse_qs, urlsplit

from pydantic import BaseModel, ConfigDict, Field

from payaware._constants import RESET_PASSWORD_PATH, RESET_TOKEN_PARAM

_WEB_SCHEMES = frozenset({"http", "https"})


class DeepLink(BaseModel):
    """A parsed deep link: normalised path plus single-valued query params."""

    model_config = ConfigDict(frozen=True)

    url: str
    path: str
    params: dict[str, str] = Field(default_factory=dict)

    @property
    def is_reset_password(self) -> bool:
        return self.path == RESET_PASSWORD_PATH

    @property
    def reset_token(self) -> str | None:
        """The ``token`` query parameter of a reset link, or ``None``."""
        if not self.is_reset_password:
            return None
        token = self.params.get(RESET_TOKEN_PARAM, "").strip()
        return token or None


def parse_deep_link(url: str) -> DeepLink:
    """Split *url* into a normalised path and query parameters.

    Leading/trailing slashes are stripped from the path, so
    ``reset-password`` and ``/reset-password`` compare equal.  Repeated
    query keys keep their first value.
    """
    parts = urlsplit(url.strip())
    if parts.scheme.lower() in _WEB_SCHEMES or not parts.scheme:
        raw_path = parts.path
    else:
        raw_path = f"{parts.netloc}/{parts.path.lstrip('/')}" if parts.netloc else parts.path

    query = parse_qs(parts.query, keep_blank_values=True)
    params = {key: values[0] for key, values in query.items() if values}
    return DeepLink(url=url, path=raw_path.strip("/"), params=params)
