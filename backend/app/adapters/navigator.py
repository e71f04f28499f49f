from typing import Optional


class Navigator:
    """
    Per-request redirect capability. Services call redirect_to(path); the
    route reads `location` afterwards and answers with a 303.
    """

    def __init__(self):
        self.location: Optional[str] = None

    def redirect_to(self, path: str) -> None:
        self.location = path

    @property
    def redirected(self) -> bool:
        return self.location is not None
