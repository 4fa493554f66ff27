"""User database models."""

from flask_sqlalchemy import SQLAlchemy
from sqlalchemy import Boolean, Column, Integer, String, text

from ... import domain

db: SQLAlchemy = SQLAlchemy()


class DBUser(db.Model):  # type: ignore
    """
    User account table.

    +---------------+--------------+------+-----+---------+----------------+
    | Field         | Type         | Null | Key | Default | Extra          |
    +---------------+--------------+------+-----+---------+----------------+
    | user_id       | int(11)      | NO   | PRI | NULL    | auto_increment |
    | email         | varchar(255) | NO   | UNI | NULL    |                |
    | password_enc  | varchar(255) | NO   |     | NULL    |                |
    | verified      | tinyint(1)   | NO   |     | 0       |                |
    | token         | varchar(64)  | YES  | MUL | NULL    |                |
    | version       | int(11)      | NO   |     | NULL    |                |
    +---------------+--------------+------+-----+---------+----------------+
    """

    __tablename__ = 'users'

    user_id = Column(Integer, primary_key=True, autoincrement=True)
    email = Column(String(255), nullable=False, unique=True)
    password_enc = Column(String(255), nullable=False)
    verified = Column(Boolean, nullable=False, server_default=text('0'))
    token = Column(String(64), nullable=True, index=True)
    version = Column(Integer, nullable=False)

    __mapper_args__ = {'version_id_col': version}

    def to_domain(self) -> domain.User:
        """Cast to a :class:`.domain.User`."""
        return domain.User(
            user_id=self.user_id,
            email=self.email,
            password_hash=self.password_enc,
            verified=bool(self.verified),
            token=self.token,
            version=self.version
        )
