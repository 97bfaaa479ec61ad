"""Interactive yes/no confirmation."""


def confirm(message: str, default: bool = True) -> bool:
    """Ask a yes/no question on the terminal; empty input selects `default`."""
    suffix = "(Y/n)" if default else "(y/N)"
    response = input(f"{message} {suffix}: ").strip().lower()
    if not response:
        return default
    return response in ("y", "yes")
