"""Database models for local user accounts."""

from datetime import datetime

from flask_sqlalchemy import SQLAlchemy
from sqlalchemy import Column, DateTime, ForeignKey, Integer, String, \
    UniqueConstraint, text
from sqlalchemy.orm import relationship

db: SQLAlchemy = SQLAlchemy()


class DBUser(db.Model):  # type: ignore
    """
    Local account mirroring a Product Opener user.

    +---------------------+--------------+------+-----+---------+
    | Field               | Type         | Null | Key | Default |
    +---------------------+--------------+------+-----+---------+
    | user_id             | int          | NO   | PRI | NULL    |
    | user_name           | varchar(255) | NO   | UNI | ''      |
    | real_name           | varchar(255) | NO   |     | ''      |
    | email               | varchar(255) | NO   | MUL | ''      |
    | email_authenticated | datetime     | YES  |     | NULL    |
    | token               | varchar(32)  | YES  |     | NULL    |
    | touched             | datetime     | NO   |     |         |
    +---------------------+--------------+------+-----+---------+
    """

    __tablename__ = 'user'

    user_id = Column(Integer, primary_key=True, autoincrement=True)
    user_name = Column(String(255), nullable=False, unique=True,
                       server_default=text("''"))
    real_name = Column(String(255), nullable=False, server_default=text("''"))
    email = Column(String(255), nullable=False, index=True,
                   server_default=text("''"))
    email_authenticated = Column(DateTime, nullable=True)
    token = Column(String(32), nullable=True)
    touched = Column(DateTime, nullable=False, default=datetime.now,
                     onupdate=datetime.now)

    options = relationship('DBUserOption', back_populates='user',
                           cascade='all, delete-orphan', lazy='joined')


class DBUserOption(db.Model):  # type: ignore
    """A single user preference."""

    __tablename__ = 'user_properties'
    __table_args__ = (UniqueConstraint('up_user', 'up_property'),)

    up_id = Column(Integer, primary_key=True, autoincrement=True)
    up_user = Column(ForeignKey('user.user_id'), nullable=False, index=True)
    up_property = Column(String(255), nullable=False)
    up_value = Column(String(255), nullable=False, server_default=text("''"))

    user = relationship('DBUser', back_populates='options')
