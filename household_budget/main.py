from fastapi import FastAPI

from household_budget.logging_config import setup_logging
from household_budget.routers.profiles import router as profiles_router
from household_budget.routers.accounts import router as accounts_router
from household_budget.routers.categories import router as categories_router
from household_budget.routers.budgets import router as budgets_router
from household_budget.routers.tags import router as tags_router
from household_budget.routers.cardholders import router as cardholders_router
from household_budget.routers.transactions import router as transactions_router

logger = setup_logging()

app = FastAPI(title="Household Budget API")

app.include_router(profiles_router)
app.include_router(accounts_router)
app.include_router(categories_router)
app.include_router(budgets_router)
app.include_router(tags_router)
app.include_router(cardholders_router)
app.include_router(transactions_router)


@app.get("/")
def read_root():
    return "Server is running."
