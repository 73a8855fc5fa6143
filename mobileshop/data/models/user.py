import uuid

from sqlalchemy import Column, String

from mobileshop.data.database import Base


class UserModel(Base):
    __tablename__ = "users"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    email = Column(String, nullable=True, unique=True)
    # bearer token accepted by SqlGateway.get_current_user; NULL when signed out
    access_token = Column(String, nullable=True, unique=True, index=True)
