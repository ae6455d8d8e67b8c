from portflow.models.enums import Screen
from portflow.schemas.session import User


def resolve_screen(fragment: str | None, user: User | None) -> Screen:
    """
    Map an address fragment like "#/dashboard" to the screen to show.
    Unknown or empty fragments land on the landing page; the dashboard needs a session.
    """
    path = (fragment or "").replace("#/", "", 1).strip("/")

    if path == Screen.LOGIN.value:
        return Screen.LOGIN
    if path == Screen.DASHBOARD.value:
        return Screen.DASHBOARD if user else Screen.LOGIN
    return Screen.LANDING


def fragment_for(screen: Screen) -> str:
    return f"#/{screen.value}"
