"""Shared fixtures: a small FastAPI + SQLAlchemy + Typer host with the bridge installed."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable

import httpx
import pytest
import typer
from fastapi import FastAPI, Request
from fastapi.testclient import TestClient
from sqlalchemy import ForeignKey, String, create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import DeclarativeBase, Mapped, Session, mapped_column, sessionmaker
from sqlalchemy.pool import StaticPool

from e2e_bridge.adapters.server import (
    FactoryRegistry,
    ModelRegistry,
    fastapi_host_services,
    has_valid_signature,
    install_bridge,
)
from e2e_bridge.core.config import AppSettings

APP_KEY = "test-app-key-0123456789"
PREFIX = "/__cypress__"


class Base(DeclarativeBase):
    pass


class User(Base):
    __tablename__ = "users"
    __hidden__ = ("password", "remember_token")

    id: Mapped[int] = mapped_column(primary_key=True)
    name: Mapped[str] = mapped_column(String(100))
    email: Mapped[str] = mapped_column(String(200), unique=True)
    password: Mapped[str] = mapped_column(String(100))
    remember_token: Mapped[str | None] = mapped_column(String(100), nullable=True)
    active: Mapped[bool] = mapped_column(default=True)


class Post(Base):
    __tablename__ = "posts"

    id: Mapped[int] = mapped_column(primary_key=True)
    title: Mapped[str] = mapped_column(String(200))
    user_id: Mapped[int | None] = mapped_column(ForeignKey("users.id"), nullable=True)


@dataclass
class HostApp:
    app: FastAPI
    engine: Engine
    session_factory: Callable[[], Session]
    settings: AppSettings
    installed: bool
    command_calls: list[tuple[str, Any]] = field(default_factory=list)

    def count(self, model: type) -> int:
        with self.session_factory() as session:
            return session.query(model).count()


def build_host(settings: AppSettings) -> HostApp:
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    session_factory = sessionmaker(bind=engine)

    models = ModelRegistry([User, Post])
    factories = FactoryRegistry()

    @factories.define(User)
    def _user(n: int) -> dict[str, Any]:
        return {"name": f"User {n}", "email": f"user{n}@example.test", "password": "hashed-secret"}

    @factories.define(Post)
    def _post(n: int) -> dict[str, Any]:
        return {"title": f"Post {n}"}

    calls: list[tuple[str, Any]] = []
    commands = typer.Typer()

    @commands.command("migrate:fresh")
    def migrate_fresh(drop_views: bool = typer.Option(False, "--drop-views")) -> None:
        calls.append(("migrate:fresh", drop_views))
        Base.metadata.drop_all(engine)
        Base.metadata.create_all(engine)

    @commands.command("db:seed")
    def db_seed(seeder: str = typer.Option("DatabaseSeeder", "--class")) -> None:
        calls.append(("db:seed", seeder))
        with session_factory() as session:
            session.add(User(name="Seeded", email="seeded@example.test", password="x"))
            session.commit()

    app = FastAPI()

    @app.get("/", name="home")
    def home() -> dict[str, Any]:
        return {"ok": True}

    @app.get("/users/{user}", name="users.show")
    def show_user(user: int, request: Request) -> dict[str, Any]:
        return {"user": user, "auth": request.session.get("_auth_user_id")}

    @app.post("/teams", name="teams.store")
    def store_team() -> dict[str, Any]:
        return {"stored": True}

    @app.get("/email/verify/{id}/{hash}", name="verification.verify")
    def verify_email(id: int, hash: str, request: Request) -> dict[str, Any]:
        return {"id": id, "valid": has_valid_signature(str(request.url), APP_KEY)}

    host = fastapi_host_services(
        app,
        session_factory=session_factory,
        models=models,
        factories=factories,
        commands=commands,
        settings=settings,
    )
    installed = install_bridge(app, host, settings)
    return HostApp(
        app=app,
        engine=engine,
        session_factory=session_factory,
        settings=settings,
        installed=installed,
        command_calls=calls,
    )


def make_settings(tmp_path: Path, **overrides: Any) -> AppSettings:
    values: dict[str, Any] = {
        "enabled": True,
        "environment": "testing",
        "app_key": APP_KEY,
        "base_url": "http://testserver",
        "routes_cache_path": tmp_path / "routes.json",
    }
    values.update(overrides)
    return AppSettings(_env_file=None, **values)


@pytest.fixture
def bridge_settings(tmp_path: Path) -> AppSettings:
    return make_settings(tmp_path)


@pytest.fixture
def host(bridge_settings: AppSettings) -> HostApp:
    return build_host(bridge_settings)


@pytest.fixture
def client(host: HostApp) -> TestClient:
    with TestClient(host.app) as test_client:
        yield test_client


@pytest.fixture
def token(client: TestClient) -> str:
    return client.get(f"{PREFIX}/csrf_token").json()


@pytest.fixture
def bridge_transport(host: HostApp) -> httpx.AsyncBaseTransport:
    return httpx.ASGITransport(app=host.app)
