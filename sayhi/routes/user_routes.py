# sayhi/routes/user_routes.py
from fastapi import APIRouter, Depends, Header, Response

from sayhi.accounts import AccountService, get_accounts
from sayhi.errors import NotFoundError
from sayhi.repositories import Page
from sayhi.routes.params import listing, ok, paging, strip_legacy_id
from sayhi.schemas import RegisterRequest, UpdateProfileRequest, UserOut

router = APIRouter()


def _own_account(raw_id: str, x_userid: str | None, action: str) -> str:
    # 只能改/删自己的账号
    userid = strip_legacy_id(raw_id)
    if not x_userid or userid != x_userid:
        raise NotFoundError(f"fail to find the item when {action}")
    return userid


@router.get("")
def list_users(
    response: Response,
    page: Page = Depends(paging("ASC")),
    accounts: AccountService = Depends(get_accounts),
):
    users, count = accounts.list_users(page)
    return listing(response, [UserOut.model_validate(u).model_dump() for u in users], count)


@router.post("")
def register(payload: RegisterRequest, accounts: AccountService = Depends(get_accounts)):
    user = accounts.register(payload)
    return ok({"id": user.id, "userid": user.userid})


@router.get("/{userid}")
def show_user(userid: str, accounts: AccountService = Depends(get_accounts)):
    user = accounts.get_user(strip_legacy_id(userid))
    return ok(UserOut.model_validate(user).model_dump())


@router.put("/{userid}")
def update_user(
    userid: str,
    payload: UpdateProfileRequest,
    x_userid: str | None = Header(default=None),
    accounts: AccountService = Depends(get_accounts),
):
    userid = _own_account(userid, x_userid, "updating")
    user = accounts.update_profile(userid, payload)
    return ok(UserOut.model_validate(user).model_dump())


@router.delete("/{userid}")
def delete_user(
    userid: str,
    x_userid: str | None = Header(default=None),
    accounts: AccountService = Depends(get_accounts),
):
    userid = _own_account(userid, x_userid, "deleting")
    return ok(accounts.delete_account(userid).model_dump())
