"""Wiring from ServiceSettings to a ready-to-use engine and ASGI app."""

from __future__ import annotations

import logging
from typing import Optional

from starlette.applications import Starlette

from .network.verifyhttp.app import create_app
from .network.verifyhttp.delegate import HttpDelegateClient
from .network.verifyhttp.sources import HttpKeySource
from .verification.engine import VerificationEngine
from .verification.key_store import FileKeySource, KeySource, VerificationKeyStore
from .verification.settings import ServiceSettings, load_settings

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def configure_logging(verbose: bool = False) -> None:
    logging.basicConfig(level=logging.DEBUG if verbose else logging.INFO, format=LOG_FORMAT)


def build_key_source(settings: ServiceSettings) -> Optional[KeySource]:
    if settings.vkey_dir:
        return FileKeySource(settings.vkey_dir)
    if settings.supabase_url:
        return HttpKeySource(
            settings.supabase_url,
            bucket=settings.key_bucket,
            timeout=settings.key_fetch_timeout,
        )
    return None


def build_engine(settings: Optional[ServiceSettings] = None) -> VerificationEngine:
    settings = settings if settings is not None else load_settings()
    source = build_key_source(settings)
    engine = VerificationEngine(
        key_store=VerificationKeyStore(source, fetch_timeout=settings.key_fetch_timeout),
        delegate=HttpDelegateClient(settings.delegate_timeout),
        delegate_endpoint=settings.verifier_url,
        allowed_endpoints=settings.allowed_verifier_urls,
        policy=settings.policy,
        local_pairing=settings.local_pairing,
    )
    logger.info(
        "engine ready: key source=%s, delegate=%s, policy=%s, local pairing=%s",
        source.name if source is not None else "none",
        settings.verifier_url or "none",
        engine.policy,
        "on" if settings.local_pairing else "off",
    )
    return engine


def build_app(settings: Optional[ServiceSettings] = None) -> Starlette:
    return create_app(build_engine(settings))
