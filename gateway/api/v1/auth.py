import structlog
from fastapi import APIRouter, Depends, status

from gateway.api.deps import get_auth_provider, get_current_user
from gateway.core.security import create_access_token, token_expiry
from gateway.schemas.user import UserCreate, UserLogin, UserProfile
from gateway.services.directus import AuthProvider
from gateway.utils.response import success

router = APIRouter()
logger = structlog.get_logger()


def _auth_payload(user: UserProfile, refresh_token: str = None) -> dict:
    expires_at = token_expiry()
    data = {
        "access_token": create_access_token(user),
        "expires": int(expires_at.timestamp() * 1000),
        "user": user,
    }
    if refresh_token:
        data["refresh_token"] = refresh_token
    return data


@router.post(
    "/login",
    response_model=dict,
    summary="Login user",
    description="""
Exchanges credentials with Directus and returns a gateway access token.

Behavior:
1. Logs in against Directus with the supplied credentials
2. Resolves the Directus session to a user profile
3. Issues a signed token embedding the profile
""",
    responses={
        200: {"description": "Login successful"},
        400: {"description": "Validation error"},
        401: {"description": "Invalid credentials"},
    },
)
async def login(credentials: UserLogin, auth_provider: AuthProvider = Depends(get_auth_provider)):
    session = await auth_provider.login(credentials.email, credentials.password)
    user = await auth_provider.get_profile(session.access_token)

    logger.info("user_logged_in", user_id=user.id)
    return success(
        data=_auth_payload(user, refresh_token=session.refresh_token),
        message="Login successful",
    )


@router.post(
    "/register",
    response_model=dict,
    status_code=status.HTTP_201_CREATED,
    summary="Register user account",
    responses={
        201: {"description": "Registration successful"},
        400: {"description": "Validation error or registration rejected"},
    },
)
async def register(user_in: UserCreate, auth_provider: AuthProvider = Depends(get_auth_provider)):
    user = await auth_provider.register(user_in)

    logger.info("user_registered", user_id=user.id)
    return success(data=_auth_payload(user), message="Registration successful")


@router.post("/logout")
def logout():
    # Tokens are stateless; the client discards its copy.
    logger.info("user_logged_out")
    return success(message="Logout successful")


@router.get("/me")
def me(current_user: UserProfile = Depends(get_current_user)):
    return success(data={"user": current_user}, message="User information retrieved")
