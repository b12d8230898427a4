"""Goal and portfolio endpoints."""

from typing import List
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from .. import schemas
from ..database import get_db
from ..deps import get_current_user
from ..models import User
from ..services.goal_service import GoalService, PortfolioService


_responses = {
    401: {"model": schemas.ErrorResponse, "description": "Unauthorized"},
    403: {"model": schemas.ErrorResponse, "description": "Forbidden"},
    404: {"model": schemas.ErrorResponse, "description": "Not Found"},
}

router = APIRouter(prefix="/goals", tags=["Goals"], responses=_responses)
portfolios_router = APIRouter(prefix="/portfolios", tags=["Portfolios"], responses=_responses)


@router.post("", response_model=schemas.GoalOut, status_code=status.HTTP_201_CREATED, summary="Create goal")
def create_goal(
    payload: schemas.GoalCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return GoalService(db).create_goal(user_id=current_user.id, **payload.model_dump())


@router.get("", response_model=List[schemas.GoalOut], summary="List visible goals in a workspace")
def list_goals(
    workspace_id: UUID = Query(...),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return GoalService(db).list_goals(workspace_id, current_user.id)


@router.get("/{goal_id}", response_model=schemas.GoalOut, summary="Get goal")
def get_goal(
    goal_id: UUID,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return GoalService(db).get_goal(goal_id, current_user.id)


@router.patch("/{goal_id}", response_model=schemas.GoalOut, summary="Update goal")
def update_goal(
    goal_id: UUID,
    payload: schemas.GoalUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return GoalService(db).update_goal(goal_id, current_user.id, **payload.model_dump(exclude_unset=True))


@router.delete("/{goal_id}", response_model=schemas.SuccessResponse, summary="Delete goal")
def delete_goal(
    goal_id: UUID,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    GoalService(db).delete_goal(goal_id, current_user.id)
    return schemas.SuccessResponse(status="ok", detail="Goal deleted")


@portfolios_router.post("", response_model=schemas.PortfolioOut, status_code=status.HTTP_201_CREATED, summary="Create portfolio")
def create_portfolio(
    payload: schemas.PortfolioCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return PortfolioService(db).create_portfolio(user_id=current_user.id, **payload.model_dump())


@portfolios_router.get("", response_model=List[schemas.PortfolioOut], summary="List portfolios in a workspace")
def list_portfolios(
    workspace_id: UUID = Query(...),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return PortfolioService(db).list_portfolios(workspace_id, current_user.id)


@portfolios_router.get("/{portfolio_id}", response_model=schemas.PortfolioOut, summary="Get portfolio")
def get_portfolio(
    portfolio_id: UUID,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return PortfolioService(db).get_portfolio(portfolio_id, current_user.id)


@portfolios_router.patch("/{portfolio_id}", response_model=schemas.PortfolioOut, summary="Update portfolio")
def update_portfolio(
    portfolio_id: UUID,
    payload: schemas.PortfolioUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return PortfolioService(db).update_portfolio(portfolio_id, current_user.id, **payload.model_dump(exclude_unset=True))


@portfolios_router.delete("/{portfolio_id}", response_model=schemas.SuccessResponse, summary="Delete portfolio")
def delete_portfolio(
    portfolio_id: UUID,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    PortfolioService(db).delete_portfolio(portfolio_id, current_user.id)
    return schemas.SuccessResponse(status="ok", detail="Portfolio deleted")
