# sayhi/routes/auth_routes.py
from fastapi import APIRouter, Depends, Response

from sayhi.accounts import AccountService, get_accounts
from sayhi.routes.params import listing
from sayhi.schemas import CheckAuthRequest, LoginRequest, UserOut

router = APIRouter()


@router.post("/login")
def login(payload: LoginRequest, accounts: AccountService = Depends(get_accounts)):
    user, issued = accounts.login(payload.username, payload.email, payload.password)
    data = UserOut.model_validate(user).model_dump()
    data.update(token=issued.token, expire=issued.expire)
    return {"errno": 0, "success": True, "data": data}


@router.post("/checkUserAuth")
def check_user_auth(payload: CheckAuthRequest):
    # 真正的校验在 gate 里做，这里只回显
    return {"errno": 0, "success": True, "data": {"token": payload.token, "userid": payload.userid}}


@router.get("/randomPickUsers")
def random_pick_users(response: Response, accounts: AccountService = Depends(get_accounts)):
    users = [UserOut.model_validate(u).model_dump() for u in accounts.random_pick()]
    return listing(response, users, len(users))
