from __future__ import annotations

from pydantic import BaseModel, PositiveInt


class QotdConfig(BaseModel):
    # discord
    command_prefix: str = "q!"
    admin_role_name: str = "qotd_admin"

    # custom content
    custom_question_limit: PositiveInt = 100
    custom_poll_limit: PositiveInt = 100
    allow_custom_repeats: bool = True


class DatabaseConfig(BaseModel):
    min_pool_size: PositiveInt = 1
    max_pool_size: PositiveInt = 5
