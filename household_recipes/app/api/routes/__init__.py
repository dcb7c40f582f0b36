from fastapi import APIRouter

from household_recipes.app.api.routes import imports, meal_plans, shopping, smart_lists

api_router = APIRouter()
api_router.include_router(imports.router)
api_router.include_router(meal_plans.router)
api_router.include_router(smart_lists.router)
api_router.include_router(shopping.router)
