# sayhi/accounts.py
import logging
import random
import uuid
from typing import Callable, List, Optional, Tuple

from fastapi import Depends
from sqlalchemy.orm import Session

from sayhi import errors
from sayhi.auth import IssuedToken, TokenAuthority, get_authority, hash_password, verify_password
from sayhi.clock import now_ms
from sayhi.db import get_db
from sayhi.errors import CredentialsError, DuplicateEmailError, NotFoundError, ValidationError
from sayhi.models import User
from sayhi.repositories import Page, UserRepository
from sayhi.schemas import RegisterRequest, UpdateProfileRequest, UserOut

logger = logging.getLogger(__name__)


class AccountService:
    def __init__(self, repo: UserRepository, authority: TokenAuthority, clock: Callable[[], int] = now_ms):
        self.repo = repo
        self.authority = authority
        self.clock = clock

    def _new_userid(self) -> str:
        userid = str(uuid.uuid4())
        while self.repo.find_by_userid(userid) is not None:
            userid = str(uuid.uuid4())
        return userid

    def register(self, data: RegisterRequest) -> User:
        if self.repo.find_by_email(data.email) is not None:
            raise DuplicateEmailError()

        now = self.clock()
        user = User(
            userid=self._new_userid(),
            username=data.username,
            realname=data.realname,
            email=data.email,
            password=hash_password(data.password),
            age=data.age,
            gender=data.gender,
            avatar=data.avatar,
            status="ACTIVE",
            create_time=now,
            edit_time=now,
        )
        user = self.repo.insert(user)
        logger.info("[accounts.register] userid=%s", user.userid)
        return user

    def login(self, username: Optional[str], email: Optional[str], password: str) -> Tuple[User, IssuedToken]:
        if not username and not email:
            raise ValidationError()

        if username:
            candidates = self.repo.find_all_by_username(username)
        else:
            found = self.repo.find_by_email(email)
            candidates = [found] if found is not None else []
        # 同名用户按密码区分
        user = next((u for u in candidates if verify_password(password, u.password)), None)
        if user is None:
            raise CredentialsError()

        issued = self.authority.issue_or_renew(user.userid)
        logger.info("[accounts.login] userid=%s expire=%s", user.userid, issued.expire)
        return user, issued

    def list_users(self, page: Page) -> Tuple[List[User], int]:
        return self.repo.list(page)

    def get_user(self, userid: str) -> User:
        user = self.repo.find_by_userid(userid)
        if user is None:
            raise NotFoundError("fail to get result for this info", errno=errors.QUERY_FAILED)
        return user

    def update_profile(self, userid: str, changes: UpdateProfileRequest) -> User:
        user = self.repo.find_by_userid(userid)
        if user is None:
            raise NotFoundError("fail to find the item when updating")

        if changes.email and changes.email != user.email:
            other = self.repo.find_by_email(changes.email)
            if other is not None:
                raise DuplicateEmailError()

        for field in ("username", "realname", "email", "gender", "avatar", "status"):
            value = getattr(changes, field)
            if value:
                setattr(user, field, value)
        # age=0 也是合法值
        if changes.age is not None:
            user.age = changes.age
        if changes.password:
            user.password = hash_password(changes.password)
        user.edit_time = self.clock()
        return self.repo.save(user)

    def delete_account(self, userid: str) -> UserOut:
        user = self.repo.find_by_userid(userid)
        if user is None:
            raise NotFoundError("fail to find the item when deleting")

        snapshot = UserOut.model_validate(user)
        self.repo.delete(user)
        self.authority.revoke(userid)
        logger.info("[accounts.delete] userid=%s", userid)
        return snapshot

    def random_pick(self) -> List[User]:
        count = self.repo.count()
        if count == 0:
            return []
        offset = random.randrange(count)
        users, _ = self.repo.list(Page(start=offset, end=offset + 1, sort="id"))
        return users


def get_accounts(
    db: Session = Depends(get_db),
    authority: TokenAuthority = Depends(get_authority),
) -> AccountService:
    return AccountService(UserRepository(db), authority)
