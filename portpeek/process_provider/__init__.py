from .abstract_provider import AbstractProvider


def get_provider(backend: str) -> AbstractProvider:
    if backend == "mock":
        from .local import MockProvider

        return MockProvider()
    if backend == "lsof":
        from .lsof import LsofProvider

        return LsofProvider()
    if backend == "psutil":
        from .local import PsutilProvider

        return PsutilProvider()
    raise ValueError(f"Unknown backend: {backend}")
