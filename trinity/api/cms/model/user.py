# -*- coding: utf-8 -*-
"""
Trinity 用户模型
支持：
✅ 激活状态 / 角色
✅ 一对一钱包（selectin 预加载）
✅ 管理员判断
"""
from sqlalchemy import Boolean, Column, String
from sqlalchemy.orm import relationship

from trinity.core.db import generate_uuid
from trinity.core.enums import UserRole
from trinity.core.interface import InfoCrud


class User(InfoCrud):
    __tablename__ = "user"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    full_name = Column(String(120), nullable=False, comment="姓名")
    email = Column(String(255), nullable=False, unique=True, index=True, comment="邮箱")
    phone = Column(String(32), nullable=True, comment="手机号")
    is_active = Column(Boolean, nullable=False, default=True, comment="是否激活")
    role = Column(String(16), nullable=False, default=UserRole.USER.value, comment="角色")

    wallet = relationship("Wallet", back_populates="user", uselist=False, lazy="selectin")

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN.value
