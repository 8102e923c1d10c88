"""
Account provisioning chain.

Signup tries each strategy in order and stops at the first success:

1. managed          - create a confirmed Supabase Auth identity (service role) plus a linked profile
2. direct_sql       - insert the profile straight into Postgres
3. api              - insert the profile through the Supabase data API (subject to RLS)
4. policy_fallback  - after an RLS rejection in (3), insert into the legacy table over SQL

Every strategy returns a StrategyResult instead of raising, so the precedence can be
exercised one strategy at a time.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import List, Optional

import sqlalchemy.exc
from supabase import Client

from toystore_auth.core.exceptions import ProfileConflictError, describe_error, is_row_level_security_error
from toystore_auth.database.sql_pool import SqlPool
from toystore_auth.modules.auth.schemas import SignupRequest
from toystore_auth.modules.profiles.models import DEFAULT_ROLE
from toystore_auth.modules.profiles.schemas import ProfilePublic
from toystore_auth.modules.profiles.service import ProfileService

logger = logging.getLogger(__name__)


class Outcome(str, Enum):
    SUCCESS = "success"
    UNAVAILABLE = "unavailable"
    RETRYABLE = "retryable"
    FATAL = "fatal"


@dataclass
class StrategyResult:
    outcome: Outcome
    user: Optional[ProfilePublic] = None
    error: Optional[Exception] = None

    @classmethod
    def success(cls, user: ProfilePublic) -> "StrategyResult":
        return cls(Outcome.SUCCESS, user=user)

    @classmethod
    def unavailable(cls) -> "StrategyResult":
        return cls(Outcome.UNAVAILABLE)

    @classmethod
    def retryable(cls, error: Exception) -> "StrategyResult":
        return cls(Outcome.RETRYABLE, error=error)

    @classmethod
    def fatal(cls, error: Exception) -> "StrategyResult":
        return cls(Outcome.FATAL, error=error)


@dataclass
class ProvisioningContext:
    supabase: Client
    sql_pool: Optional[SqlPool]
    has_service_role: bool
    profiles_table: str
    legacy_table: str
    last_error: Optional[Exception] = None


class ProvisioningFailedError(Exception):
    """Every strategy was unavailable or failed."""

    def __init__(self, cause: Optional[Exception]):
        super().__init__(describe_error(cause) if cause else "No signup strategy available")
        self.cause = cause


class ProvisioningStrategy:
    name = "base"

    def attempt(self, data: SignupRequest, ctx: ProvisioningContext) -> StrategyResult:
        raise NotImplementedError


class ManagedCreationStrategy(ProvisioningStrategy):
    name = "managed"

    def attempt(self, data: SignupRequest, ctx: ProvisioningContext) -> StrategyResult:
        if not ctx.has_service_role:
            return StrategyResult.unavailable()

        role = data.role or DEFAULT_ROLE
        profiles = ProfileService(ctx.supabase, ctx.profiles_table)
        try:
            if profiles.exists(data.username, data.email):
                return StrategyResult.fatal(ProfileConflictError())
            response = ctx.supabase.auth.admin.create_user({
                "email": data.email,
                "password": data.password,
                "email_confirm": True,
                "user_metadata": {"username": data.username, "role": role},
            })
            created_user = getattr(response, "user", None)
            if created_user is None:
                raise RuntimeError("Admin create_user returned no user")
        except Exception as e:
            logger.error(f"Service-role signup error: {e}")
            return StrategyResult.retryable(e)

        logger.info(f"Created auth user {created_user.id}")
        # The identity exists now; a failed profile insert is not retried
        try:
            profiles.insert({
                "auth_id": created_user.id,
                "username": data.username,
                "email": data.email,
                "role": role,
                "password": data.password,
            })
        except Exception as e:
            logger.warning(f"Profile insert failed for auth user {created_user.id}: {e}")

        return StrategyResult.success(
            ProfilePublic(id=created_user.id, username=data.username, email=data.email, role=role)
        )


class DirectSqlStrategy(ProvisioningStrategy):
    name = "direct_sql"

    def table(self, ctx: ProvisioningContext) -> str:
        return ctx.profiles_table

    def is_available(self, ctx: ProvisioningContext) -> bool:
        return ctx.sql_pool is not None

    def attempt(self, data: SignupRequest, ctx: ProvisioningContext) -> StrategyResult:
        if not self.is_available(ctx):
            return StrategyResult.unavailable()

        table = self.table(ctx)
        params = {
            "username": data.username,
            "email": data.email,
            "password": data.password,
            "role": data.role or DEFAULT_ROLE,
        }
        try:
            existing = ctx.sql_pool.fetch_one(
                f"SELECT id FROM {table} WHERE username = :username OR email = :email LIMIT 1",
                params,
            )
            if existing:
                return StrategyResult.fatal(ProfileConflictError())
            row = ctx.sql_pool.fetch_one(
                f"INSERT INTO {table} (username, email, password, role) "
                f"VALUES (:username, :email, :password, :role) "
                f"RETURNING id, username, email, role",
                params,
            )
        except sqlalchemy.exc.IntegrityError:
            return StrategyResult.fatal(ProfileConflictError())
        except Exception as e:
            logger.error(f"Postgres error during signup ({table}): {e}")
            return StrategyResult.retryable(e)

        return StrategyResult.success(ProfilePublic.from_row(row))


class ApiWriteStrategy(ProvisioningStrategy):
    name = "api"

    def attempt(self, data: SignupRequest, ctx: ProvisioningContext) -> StrategyResult:
        profiles = ProfileService(ctx.supabase, ctx.profiles_table)
        try:
            if profiles.exists(data.username, data.email):
                return StrategyResult.fatal(ProfileConflictError())
            row = profiles.insert({
                "username": data.username,
                "email": data.email,
                "password": data.password,
                "role": data.role or DEFAULT_ROLE,
            })
            user = ProfilePublic.from_row(row)
        except ProfileConflictError as e:
            return StrategyResult.fatal(e)
        except Exception as e:
            logger.error(f"Supabase signup error: {e}")
            return StrategyResult.retryable(e)

        return StrategyResult.success(user)


class PolicyFallbackStrategy(DirectSqlStrategy):
    name = "policy_fallback"

    def table(self, ctx: ProvisioningContext) -> str:
        return ctx.legacy_table

    def is_available(self, ctx: ProvisioningContext) -> bool:
        return (
            ctx.sql_pool is not None
            and ctx.last_error is not None
            and is_row_level_security_error(ctx.last_error)
        )


def default_strategies() -> List[ProvisioningStrategy]:
    return [
        ManagedCreationStrategy(),
        DirectSqlStrategy(),
        ApiWriteStrategy(),
        PolicyFallbackStrategy(),
    ]


class ProvisioningChain:
    def __init__(self, strategies: Optional[List[ProvisioningStrategy]] = None):
        self.strategies = strategies if strategies is not None else default_strategies()

    def run(self, data: SignupRequest, ctx: ProvisioningContext) -> ProfilePublic:
        """Return the created profile, or raise ProfileConflictError / ProvisioningFailedError"""
        for strategy in self.strategies:
            result = strategy.attempt(data, ctx)
            if result.outcome == Outcome.UNAVAILABLE:
                logger.debug(f"Signup strategy {strategy.name} unavailable")
                continue
            if result.outcome == Outcome.SUCCESS:
                logger.info(f"Signup for {data.username} succeeded via {strategy.name}")
                return result.user
            if result.outcome == Outcome.FATAL:
                logger.info(f"Signup for {data.username} stopped at {strategy.name}: {result.error}")
                raise result.error
            logger.warning(f"Signup strategy {strategy.name} failed, trying next: {result.error}")
            ctx.last_error = result.error

        raise ProvisioningFailedError(ctx.last_error)
