"""Dependency Injection для долгов."""

from typing import Annotated

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from src.core.database import get_session

from .services.debt_service import DebtService
from .services.settlement_service import SettlementService
from .uow.unit_of_work import UnitOfWork


async def get_uow(session: AsyncSession = Depends(get_session)) -> UnitOfWork:
    return UnitOfWork(session)


async def get_settlement_service(uow: UnitOfWork = Depends(get_uow)) -> SettlementService:
    return SettlementService(uow=uow)


async def get_debt_service(uow: UnitOfWork = Depends(get_uow)) -> DebtService:
    return DebtService(uow=uow)


SettlementSvcDep = Annotated[SettlementService, Depends(get_settlement_service)]
DebtSvcDep = Annotated[DebtService, Depends(get_debt_service)]
