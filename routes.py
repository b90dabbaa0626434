"""API Routes for authentication and expenses"""
import logging
from typing import Annotated, List, Optional

from fastapi import APIRouter, Depends, HTTPException, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from config import Settings
from errors import ExpenseTrackerError
from models.expense import Expense, ExpenseIn, ExpenseStats
from models.user import AuthResponse, LoginRequest, SignUpRequest
from services import auth_service, expenses_service
from services.database import Database

router = APIRouter()
logger = logging.getLogger(__name__)

bearer_scheme = HTTPBearer(auto_error=False)

# --- Dependency Functions ---
def get_database(request: Request) -> Database:
    """Dependency to get the database handle created at startup."""
    database = request.app.state.database
    if database is None:
        logger.error("Database not found in application state. Check MongoDB connection.")
        raise HTTPException(status_code=503, detail="Database service not available.")
    return database


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


DatabaseDep = Annotated[Database, Depends(get_database)]
SettingsDep = Annotated[Settings, Depends(get_settings)]


async def get_current_user_id(
    database: DatabaseDep,
    settings: SettingsDep,
    credentials: Annotated[Optional[HTTPAuthorizationCredentials], Depends(bearer_scheme)],
) -> str:
    """Resolves the bearer token to a user id; raises AuthError (401) otherwise."""
    token = credentials.credentials if credentials else None
    return await auth_service.authenticate(database.users, settings, token)


CurrentUserDep = Annotated[str, Depends(get_current_user_id)]

# --- Health ---

@router.get("/health", summary="Health Check")
async def health():
    return {"message": "Expense Tracker API is running!"}

# --- Auth Routes ---

@router.post("/auth/signup", status_code=201, response_model=AuthResponse, summary="Sign Up")
async def signup(payload: SignUpRequest, database: DatabaseDep, settings: SettingsDep):
    logger.info(f"POST /auth/signup called for username '{payload.username}'")
    try:
        result = await auth_service.sign_up(database.users, settings, payload.username, payload.email, payload.password)
        return AuthResponse(message="User created successfully", token=result.token, user=result.user)
    except ExpenseTrackerError:
        raise
    except Exception as e:
        logger.exception(f"Unexpected error during signup: {e}")
        raise HTTPException(status_code=500, detail="Internal server error")


@router.post("/auth/login", response_model=AuthResponse, summary="Log In")
async def login(payload: LoginRequest, database: DatabaseDep, settings: SettingsDep):
    logger.info("POST /auth/login called")
    try:
        result = await auth_service.log_in(database.users, settings, payload.email, payload.password)
        return AuthResponse(message="Login successful", token=result.token, user=result.user)
    except ExpenseTrackerError:
        raise
    except Exception as e:
        logger.exception(f"Unexpected error during login: {e}")
        raise HTTPException(status_code=500, detail="Internal server error")

# --- Expense Routes ---

@router.get("/expenses", response_model=List[Expense], summary="Get All Expenses", description="Retrieves the caller's expenses, newest first.")
async def get_expenses(user_id: CurrentUserDep, database: DatabaseDep) -> List[Expense]:
    logger.info(f"GET /expenses called by user {user_id}")
    try:
        return await expenses_service.list_expenses(database.expenses, user_id)
    except ExpenseTrackerError:
        raise
    except Exception as e:
        logger.exception(f"Unexpected error fetching expenses: {e}")
        raise HTTPException(status_code=500, detail="Failed to fetch expenses")


@router.get("/expenses/stats", response_model=ExpenseStats, summary="Expense Statistics", description="Totals, counts and percentage share per category.")
async def get_expense_stats(user_id: CurrentUserDep, database: DatabaseDep) -> ExpenseStats:
    logger.info(f"GET /expenses/stats called by user {user_id}")
    try:
        return await expenses_service.get_stats(database.expenses, user_id)
    except ExpenseTrackerError:
        raise
    except Exception as e:
        logger.exception(f"Unexpected error computing stats: {e}")
        raise HTTPException(status_code=500, detail="Failed to fetch expense statistics")


@router.post("/expenses", status_code=201, summary="Add Expense")
async def add_expense(payload: ExpenseIn, user_id: CurrentUserDep, database: DatabaseDep):
    logger.info(f"POST /expenses called by user {user_id}")
    try:
        expense = await expenses_service.create_expense(
            database.expenses, user_id, payload.category, payload.amount, payload.comments
        )
        return {"message": "Expense added successfully", "expense": expense}
    except ExpenseTrackerError:
        raise
    except Exception as e:
        logger.exception(f"Unexpected error adding expense: {e}")
        raise HTTPException(status_code=500, detail="Failed to add expense")


@router.put("/expenses/{expense_id}", summary="Update Expense")
async def update_expense(expense_id: str, payload: ExpenseIn, user_id: CurrentUserDep, database: DatabaseDep):
    logger.info(f"PUT /expenses/{expense_id} called by user {user_id}")
    try:
        expense = await expenses_service.update_expense(
            database.expenses, user_id, expense_id, payload.category, payload.amount, payload.comments
        )
        return {"message": "Expense updated successfully", "expense": expense}
    except ExpenseTrackerError:
        raise
    except Exception as e:
        logger.exception(f"Unexpected error updating expense {expense_id}: {e}")
        raise HTTPException(status_code=500, detail="Failed to update expense")


@router.delete("/expenses/{expense_id}", summary="Delete Expense")
async def delete_expense(expense_id: str, user_id: CurrentUserDep, database: DatabaseDep):
    logger.info(f"DELETE /expenses/{expense_id} called by user {user_id}")
    try:
        await expenses_service.delete_expense(database.expenses, user_id, expense_id)
        return {"message": "Expense deleted successfully"}
    except ExpenseTrackerError:
        raise
    except Exception as e:
        logger.exception(f"Unexpected error deleting expense {expense_id}: {e}")
        raise HTTPException(status_code=500, detail="Failed to delete expense")
