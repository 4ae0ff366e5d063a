"""Location fragment tracking the current document, as in a browser address bar."""

from urllib.parse import quote, unquote, urldefrag


class LocationFragment:
    """
    Holds the viewer URL and the ``#fragment`` naming the current document.

    Example:
        loc = LocationFragment("http://127.0.0.1:3000/#guide/intro.md")
        loc.fragment  # "guide/intro.md"
        loc.update("guide/setup.md")
        loc.href      # "http://127.0.0.1:3000/#guide/setup.md"
    """

    def __init__(self, url: str):
        base, fragment = urldefrag(url)
        self.base = base
        self.fragment = unquote(fragment)

    def update(self, path: str) -> None:
        """Reflect a new current path; "" clears the fragment."""
        self.fragment = path

    @property
    def href(self) -> str:
        if not self.fragment:
            return self.base
        return f"{self.base}#{quote(self.fragment, safe='/')}"

    def __repr__(self) -> str:
        return f"LocationFragment({self.href!r})"


__all__ = ["LocationFragment"]
