from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from film_tool import __version__
from film_tool.config.settings import configure_logging
from film_tool.api.shipping_api import router as shipping_router
from film_tool.api.calculators_api import router as calculators_router
from film_tool.api.state import resolver, settings

configure_logging(settings.log_level)

app = FastAPI(
    title="Film Tool API",
    description="Film roll weight, pallet and freight calculations",
    version=__version__
)

# Enable CORS for frontend development
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(shipping_router)
app.include_router(calculators_router)


@app.get("/")
async def root():
    return {"status": "online", "message": "Film Tool API Active"}


@app.get("/system/status")
async def get_status():
    rate_table = resolver.rate_table
    return {
        "engine_active": True,
        "vendors": len(rate_table.vendors),
        "regions": len(rate_table.regions),
        "data_dir": str(settings.data_dir),
        "rate_tiers_last_modified": (
            settings.rate_tiers_csv.stat().st_mtime if settings.rate_tiers_csv.exists() else None
        ),
    }
