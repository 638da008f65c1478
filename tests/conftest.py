import pytest
from fastapi.testclient import TestClient

from zakah.core.config import Settings
from zakah.main import create_app
from zakah.routers.zakah import get_cash_supervisors, get_conversion_sessions
from zakah.services.rates.cache_service import RateCache, get_rate_cache
from zakah.services.rates.providers import ExchangeRateProvider, get_rate_provider
from zakah.services.scheduling import ConversionSessions, SessionSupervisors, SingleSlotSupervisor
from zakah.services.zakah_calculator import ZakahCalculator, get_calculator

from tests.fakes import FakeHistoricalSource, FakeLatestSource


@pytest.fixture
def historical_source() -> FakeHistoricalSource:
    return FakeHistoricalSource()


@pytest.fixture
def latest_source() -> FakeLatestSource:
    return FakeLatestSource()


@pytest.fixture
def rate_cache() -> RateCache:
    return RateCache()


@pytest.fixture
def provider(historical_source, latest_source, rate_cache) -> ExchangeRateProvider:
    return ExchangeRateProvider(historical_source, latest_source, cache=rate_cache)


@pytest.fixture
def calculator(provider) -> ZakahCalculator:
    return ZakahCalculator(provider)


@pytest.fixture
def supervisor() -> SingleSlotSupervisor:
    return SingleSlotSupervisor("cash conversion")


@pytest.fixture
def cash_supervisors() -> SessionSupervisors:
    return SessionSupervisors("cash conversion")


@pytest.fixture
def conversion_sessions(calculator) -> ConversionSessions:
    return ConversionSessions(calculator, debounce_seconds=0)


@pytest.fixture
def client(provider, rate_cache, calculator, cash_supervisors, conversion_sessions):
    app = create_app(Settings(rate_provider="static", error_display_seconds=7))
    app.dependency_overrides[get_rate_provider] = lambda: provider
    app.dependency_overrides[get_rate_cache] = lambda: rate_cache
    app.dependency_overrides[get_calculator] = lambda: calculator
    app.dependency_overrides[get_cash_supervisors] = lambda: cash_supervisors
    app.dependency_overrides[get_conversion_sessions] = lambda: conversion_sessions
    with TestClient(app) as c:
        yield c
