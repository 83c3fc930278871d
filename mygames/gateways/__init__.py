"""Gateways to the hosted database, the auth provider and the game catalog."""
from mygames.gateways.auth import Session, SupabaseAuthGateway, UserIdentity
from mygames.gateways.catalog import CatalogEntry, CatalogPage, CoverResult, RawgCatalog
from mygames.gateways.games import GamesGateway

__all__ = [
    "Session",
    "SupabaseAuthGateway",
    "UserIdentity",
    "CatalogEntry",
    "CatalogPage",
    "CoverResult",
    "RawgCatalog",
    "GamesGateway",
]
