import logging
from datetime import datetime

from pydantic import BaseModel, Field
from sqlalchemy.ext.asyncio import AsyncSession

from enums.order_status import OrderStatus
from enums.stock_action import StockAction
from exceptions.order import OrderNotFoundException, InvalidOrderStateException
from models.order import OrderDTO
from models.orderItem import OrderItemDTO
from repositories.order import OrderRepository
from services.stock import StockService
from utils.order_state_machine import OrderStateMachine
from utils.transaction_manager import TransactionManager


class StockDeltaDTO(BaseModel):
    action: StockAction = StockAction.NONE
    items: list[OrderItemDTO] = Field(default_factory=list)


class OrderLifecycleService:
    """
    Order status changes and their stock side effects.

    Stock moves exactly once per transition into processing and once more,
    inversely, per cancellation. Order.stock_committed records whether the
    order currently holds stock, so repeated transitions cannot take or give
    back the same units twice.
    """

    @staticmethod
    def compute_stock_delta(order: OrderDTO, from_status: OrderStatus, to_status: OrderStatus) -> StockDeltaDTO:
        if from_status == to_status:
            return StockDeltaDTO()
        if to_status == OrderStatus.PROCESSING and not order.stock_committed:
            return StockDeltaDTO(action=StockAction.COMMIT, items=order.items)
        if (to_status == OrderStatus.CANCELLED
                and from_status != OrderStatus.CANCELLED
                and order.stock_committed):
            return StockDeltaDTO(action=StockAction.RELEASE, items=order.items)
        return StockDeltaDTO()

    @staticmethod
    async def apply_transition(order: OrderDTO, from_status: OrderStatus, to_status: OrderStatus,
                               session: AsyncSession) -> StockDeltaDTO:
        """
        Claim one status change and apply its stock delta and bookkeeping fields.

        The new status, stock marker and timestamps are written with a
        conditional UPDATE that only matches while the order is still in
        from_status with the stock marker that was read. Stock moves only after
        that claim succeeded, so of two concurrent transitions from the same
        state exactly one moves stock. Runs inside the caller's transactional
        unit and does not validate the transition itself (see OrderStateMachine).

        Raises:
            InvalidOrderStateException: The order changed since it was read

        Returns:
            The delta that was applied
        """
        delta = OrderLifecycleService.compute_stock_delta(order, from_status, to_status)
        values = {"status": to_status}

        if delta.action == StockAction.COMMIT:
            values["stock_committed"] = True
        elif delta.action == StockAction.RELEASE:
            values["stock_committed"] = False
        if to_status == OrderStatus.DELIVERED and from_status != OrderStatus.DELIVERED:
            values["delivered_at"] = datetime.now()
        if to_status == OrderStatus.CANCELLED and from_status != OrderStatus.CANCELLED:
            values["cancelled_at"] = datetime.now()

        claimed = await OrderRepository.claim_transition(order.id, from_status, order.stock_committed, session,
                                                         **values)
        if not claimed:
            logging.warning(f"⚠️ Order {order.id} changed concurrently, "
                            f"{from_status.value} -> {to_status.value} not applied")
            raise InvalidOrderStateException(order.id, from_status.value, to_status.value)

        if delta.action == StockAction.COMMIT:
            await StockService.commit_items(delta.items, session)
        elif delta.action == StockAction.RELEASE:
            await StockService.release_items(delta.items, session)

        if delta.action != StockAction.NONE:
            logging.info(f"📦 Order {order.id} {from_status.value} -> {to_status.value}: "
                         f"stock {delta.action.value} for {len(delta.items)} items")
        return delta

    @staticmethod
    async def update_status(order_id: int, new_status: OrderStatus, tracking_number: str | None,
                            session: AsyncSession) -> OrderDTO:
        """
        Move an order to new_status, applying its stock delta in the same unit.

        Same-status updates are no-ops apart from an optional tracking number.

        Raises:
            OrderNotFoundException: Order does not exist
            InvalidOrderStateException: Transition not allowed, or another request moved the order first
            InsufficientStockException / StockConflictException: Stock cannot be taken for processing
        """
        order = await OrderRepository.get_by_id(order_id, session)
        if order is None:
            raise OrderNotFoundException(order_id)

        current_status = order.status
        if not OrderStateMachine.validate_and_log_transition(order_id, current_status, new_status):
            raise InvalidOrderStateException(order_id, current_status.value, new_status.value)

        async with TransactionManager.atomic_unit(session):
            if current_status != new_status:
                await OrderLifecycleService.apply_transition(order, current_status, new_status, session)
            if tracking_number is not None:
                await OrderRepository.update(order_id, session, tracking_number=tracking_number)

        return await OrderRepository.get_by_id(order_id, session)

    @staticmethod
    async def mark_delivered(order_id: int, session: AsyncSession) -> OrderDTO:
        return await OrderLifecycleService.update_status(order_id, OrderStatus.DELIVERED, None, session)
