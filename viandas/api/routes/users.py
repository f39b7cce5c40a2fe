"""Account endpoints: registration, login, own profile and admin management."""
from fastapi import APIRouter, Depends, Path, Query

from ... import schemas
from ...dependencies import CurrentUser, get_current_user, get_user_service, require_admin
from ...errors import AuthorizationError, DomainError
from ...services import UserService
from ...utils import envelope

router = APIRouter(prefix="/users", tags=["users"])

ADMIN_ONLY_FIELDS = ("role", "is_active")
SELF_DEACTIVATION = "you cannot deactivate your own account"


def _user(user) -> schemas.UserRead:
    return schemas.UserRead.model_validate(user)


def _auth_result(user, token: str) -> schemas.AuthResult:
    return schemas.AuthResult(user=_user(user), token=token)


def _patch(payload: schemas.UserUpdate, current: CurrentUser, target_id: int) -> dict:
    # every user column is NOT NULL, so null means "leave unchanged"
    patch = payload.model_dump(exclude_unset=True, exclude_none=True)
    # role and activation changes require admin privilege
    if not current.is_admin and any(field in patch for field in ADMIN_ONLY_FIELDS):
        raise AuthorizationError("admin required to change role or activation")
    if patch.get("is_active") is False and target_id == current.id:
        raise DomainError(SELF_DEACTIVATION)
    return patch


@router.post("/register", status_code=201)
def register(payload: schemas.UserRegister, service: UserService = Depends(get_user_service)):
    user, token = service.register(payload.model_dump())
    return envelope(data=_auth_result(user, token), message="user registered")


@router.post("/login")
def login(payload: schemas.UserLogin, service: UserService = Depends(get_user_service)):
    user, token = service.login(payload.model_dump())
    return envelope(data=_auth_result(user, token), message="login successful")


@router.get("/profile")
def get_profile(
    current: CurrentUser = Depends(get_current_user),
    service: UserService = Depends(get_user_service),
):
    return envelope(data=_user(service.get_by_id(current.id)))


@router.put("/profile")
def update_profile(
    payload: schemas.UserUpdate,
    current: CurrentUser = Depends(get_current_user),
    service: UserService = Depends(get_user_service),
):
    user = service.update(current.id, _patch(payload, current, current.id))
    return envelope(data=_user(user), message="profile updated")


@router.patch("/profile/password")
def change_own_password(
    payload: schemas.PasswordChange,
    current: CurrentUser = Depends(get_current_user),
    service: UserService = Depends(get_user_service),
):
    service.change_password(current.id, payload.current_password, payload.new_password)
    return envelope(message="password changed")


# -------------------- Admin --------------------

@router.get("/admin")
def list_users(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    _: CurrentUser = Depends(require_admin),
    service: UserService = Depends(get_user_service),
):
    users, pagination = service.list(page, limit)
    return envelope(data=[_user(u) for u in users], pagination=pagination)


@router.get("/admin/{user_id}")
def get_user(
    user_id: int = Path(..., ge=1),
    _: CurrentUser = Depends(require_admin),
    service: UserService = Depends(get_user_service),
):
    return envelope(data=_user(service.get_by_id(user_id)))


@router.put("/admin/{user_id}")
def update_user(
    payload: schemas.UserUpdate,
    user_id: int = Path(..., ge=1),
    current: CurrentUser = Depends(require_admin),
    service: UserService = Depends(get_user_service),
):
    user = service.update(user_id, _patch(payload, current, user_id))
    return envelope(data=_user(user), message="user updated")


@router.patch("/admin/{user_id}/password")
def change_user_password(
    payload: schemas.PasswordChange,
    user_id: int = Path(..., ge=1),
    _: CurrentUser = Depends(require_admin),
    service: UserService = Depends(get_user_service),
):
    service.change_password(user_id, payload.current_password, payload.new_password)
    return envelope(message="password changed")


@router.patch("/admin/{user_id}/deactivate")
def deactivate_user(
    user_id: int = Path(..., ge=1),
    current: CurrentUser = Depends(require_admin),
    service: UserService = Depends(get_user_service),
):
    if user_id == current.id:
        raise DomainError(SELF_DEACTIVATION)
    service.deactivate(user_id)
    return envelope(message="user deactivated")


@router.patch("/admin/{user_id}/activate")
def activate_user(
    user_id: int = Path(..., ge=1),
    _: CurrentUser = Depends(require_admin),
    service: UserService = Depends(get_user_service),
):
    return envelope(data=_user(service.activate(user_id)), message="user activated")
