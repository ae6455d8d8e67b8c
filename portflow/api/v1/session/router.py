from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from portflow.core.database import get_db
from portflow.services.session_service import SessionService
from portflow.services.navigation import resolve_screen, fragment_for
from portflow.schemas.session import User, LoginRequest, NavigationResponse, MessageResponse

router = APIRouter(prefix="/session", tags=["Session"])


# ============== Dependencies ==============

async def require_session(db: AsyncSession = Depends(get_db)) -> User:
    """Dependency for Ops Center endpoints: any stored user will do."""
    user = await SessionService(db).current_user()
    if not user:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not logged in"
        )
    return user


# ============== Endpoints ==============

@router.post("/login", response_model=User)
async def login(request: LoginRequest, db: AsyncSession = Depends(get_db)):
    """Store the operator session. No password; this is not a security boundary."""
    return await SessionService(db).login(request.email, request.company_name)


@router.post("/logout", response_model=MessageResponse)
async def logout(db: AsyncSession = Depends(get_db)):
    await SessionService(db).logout()
    return MessageResponse(message="Logged out")


@router.get("", response_model=User)
async def current_session(user: User = Depends(require_session)):
    return user


@router.get("/navigate", response_model=NavigationResponse)
async def navigate(fragment: str = "", db: AsyncSession = Depends(get_db)):
    """
    Resolve an address fragment (#/landing, #/login, #/dashboard) to the screen to render.
    The dashboard falls back to login without a session.
    """
    user = await SessionService(db).current_user()
    screen = resolve_screen(fragment, user)
    return NavigationResponse(fragment=fragment_for(screen), screen=screen.value, user=user)
