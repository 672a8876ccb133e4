from fastapi import APIRouter
from app.api import auth, roles, users, audits, concessionaires, catalogs, markets, market_locals

router = APIRouter()
router.include_router(auth.router, prefix="/auth", tags=["Auth"])
router.include_router(roles.router, prefix="/roles", tags=["Roles"])
router.include_router(users.router, prefix="/users", tags=["Users"])
router.include_router(audits.router, prefix="/audits", tags=["Audits"])
router.include_router(concessionaires.router, prefix="/concessionaires", tags=["Concessionaires"])
router.include_router(markets.router, prefix="/catalogs/markets", tags=["Markets"])
router.include_router(market_locals.router, prefix="/catalogs/locals", tags=["Locals"])
router.include_router(catalogs.router, prefix="/catalogs")
