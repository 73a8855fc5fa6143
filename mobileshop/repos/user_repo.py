from sqlalchemy import select
from sqlalchemy.orm import Session

from mobileshop.data.models.user import UserModel


class UserRepo:
    def __init__(self, db: Session):
        self.db = db

    def get_by_token(self, access_token: str) -> UserModel | None:
        return self.db.execute(
            select(UserModel).where(UserModel.access_token == access_token)
        ).scalar_one_or_none()

    def clear_token(self, access_token: str) -> UserModel | None:
        user = self.get_by_token(access_token)
        if user:
            user.access_token = None
            self.db.flush()
        return user
