from typing import Annotated

from fastapi import Depends, Request

from repositories.planning_repo import PlanningRepository
from vaccine_core.policy import PlanningPolicy


def get_repo(request: Request) -> PlanningRepository:
    return request.app.state.repo


def get_policy(request: Request) -> PlanningPolicy:
    return request.app.state.policy


RepoDep = Annotated[PlanningRepository, Depends(get_repo)]
PolicyDep = Annotated[PlanningPolicy, Depends(get_policy)]
