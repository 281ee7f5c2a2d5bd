import logging

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import Session

from exceptions.product import (
    ProductNotFoundException,
    VariantNotFoundException,
    ColorNotFoundException,
    InsufficientStockException,
    StockConflictException,
    SelectionRequiredException
)
from models.orderItem import OrderItemDTO
from models.product import ProductDTO, ProductVariantDTO, ProductColorDTO
from repositories.product import ProductRepository


class StockService:
    """
    Stock ledger for products and their variant / color pools.

    Every decrement is a conditional UPDATE (`stock = stock - n WHERE stock >= n`),
    so two requests racing for the last units cannot both succeed. The loser gets
    StockConflictException and its transactional unit is rolled back.
    """

    @staticmethod
    def require_complete_selection(product: ProductDTO, variant: str | None, color: str | None) -> None:
        """
        A product with variants needs a variant, a product with colors needs a color.

        Raises:
            SelectionRequiredException
        """
        if product.variants and not variant:
            raise SelectionRequiredException(product.id, "variant")
        if product.colors and not color:
            raise SelectionRequiredException(product.id, "color")

    @staticmethod
    async def _resolve(product_id: int, variant: str | None, color: str | None,
                       session: AsyncSession | Session) -> tuple[ProductDTO, ProductVariantDTO | None, ProductColorDTO | None]:
        product = await ProductRepository.get_by_id(product_id, session)
        if product is None:
            raise ProductNotFoundException(product_id)
        variant_dto = None
        color_dto = None
        if variant:
            variant_dto = product.get_variant(variant)
            if variant_dto is None:
                raise VariantNotFoundException(product_id, variant)
        if color:
            color_dto = product.get_color(color)
            if color_dto is None:
                raise ColorNotFoundException(product_id, color)
        StockService.require_complete_selection(product, variant, color)
        return product, variant_dto, color_dto

    @staticmethod
    def available_units(product: ProductDTO, variant_dto: ProductVariantDTO | None,
                        color_dto: ProductColorDTO | None) -> int:
        """Smallest of the counters a decrement of this selection moves."""
        pools = [product.stock]
        if variant_dto is not None:
            pools.append(variant_dto.stock)
        if color_dto is not None:
            pools.append(color_dto.stock)
        return min(pools)

    @staticmethod
    async def check_available(product_id: int, requested_qty: int, variant: str | None = None,
                              color: str | None = None, session: AsyncSession | Session = None) -> int:
        """
        Returns the units the selection can take.

        The selected variant pool, else the selected color pool, else the base
        stock. A selection naming both a variant and a color is limited by the
        smaller of the two, as decrement moves both. requested_qty is not
        compared here, see ensure_available.

        Raises:
            ProductNotFoundException, VariantNotFoundException, ColorNotFoundException
            SelectionRequiredException: Variant or color missing for a product that offers them
        """
        product, variant_dto, color_dto = await StockService._resolve(product_id, variant, color, session)
        return StockService.available_units(product, variant_dto, color_dto)

    @staticmethod
    async def ensure_available(product_id: int, requested_qty: int, variant: str | None = None,
                               color: str | None = None, session: AsyncSession | Session = None) -> ProductDTO:
        product, variant_dto, color_dto = await StockService._resolve(product_id, variant, color, session)
        available = StockService.available_units(product, variant_dto, color_dto)
        if requested_qty > available:
            raise InsufficientStockException(product_id, requested_qty, available, product.name)
        return product

    @staticmethod
    async def decrement(product_id: int, quantity: int, variant: str | None = None, color: str | None = None,
                        session: AsyncSession | Session = None) -> None:
        """
        Subtract quantity from every counter the selection touches.

        The selected variant pool, the selected color pool and the aggregate
        product stock all move by the same quantity. Each counter must hold
        enough units beforehand, otherwise InsufficientStockException is raised
        and nothing is mutated. A guard that fails during the UPDATE itself means
        another transaction consumed the units in between: StockConflictException.
        Never clamps to 0.
        """
        product, variant_dto, color_dto = await StockService._resolve(product_id, variant, color, session)

        available = StockService.available_units(product, variant_dto, color_dto)
        if quantity > available:
            raise InsufficientStockException(product_id, quantity, available, product.name)

        if variant_dto is not None:
            if not await ProductRepository.decrement_variant_stock(variant_dto.id, quantity, session):
                raise StockConflictException(product_id, quantity)
        if color_dto is not None:
            if not await ProductRepository.decrement_color_stock(color_dto.id, quantity, session):
                raise StockConflictException(product_id, quantity)
        if not await ProductRepository.decrement_stock(product_id, quantity, session):
            raise StockConflictException(product_id, quantity)

        logging.info(f"📉 Stock of product {product_id} decremented by {quantity} "
                     f"(variant={variant}, color={color})")

    @staticmethod
    async def increment(product_id: int, quantity: int, variant: str | None = None, color: str | None = None,
                        session: AsyncSession | Session = None) -> None:
        product = await ProductRepository.get_by_id(product_id, session)
        if product is None:
            raise ProductNotFoundException(product_id)

        variant_dto = product.get_variant(variant)
        if variant and variant_dto is None:
            logging.warning(f"⚠️ Variant '{variant}' of product {product_id} no longer exists, "
                            f"restoring aggregate stock only")
        elif variant_dto is not None:
            await ProductRepository.increment_variant_stock(variant_dto.id, quantity, session)

        color_dto = product.get_color(color)
        if color and color_dto is None:
            logging.warning(f"⚠️ Color '{color}' of product {product_id} no longer exists, "
                            f"restoring aggregate stock only")
        elif color_dto is not None:
            await ProductRepository.increment_color_stock(color_dto.id, quantity, session)

        await ProductRepository.increment_stock(product_id, quantity, session)
        logging.info(f"📈 Stock of product {product_id} incremented by {quantity} "
                     f"(variant={variant}, color={color})")

    @staticmethod
    async def record_sale(product_id: int, quantity: int, session: AsyncSession | Session) -> None:
        await ProductRepository.increment_sold_count(product_id, quantity, session)

    @staticmethod
    async def revert_sale(product_id: int, quantity: int, session: AsyncSession | Session) -> None:
        await ProductRepository.decrement_sold_count(product_id, quantity, session)

    @staticmethod
    async def commit_items(items: list[OrderItemDTO], session: AsyncSession | Session) -> None:
        """Take stock for every order item and count it as sold. Caller owns the transaction."""
        for item in items:
            await StockService.decrement(item.product_id, item.quantity, item.variant_label, item.color_name, session)
            await StockService.record_sale(item.product_id, item.quantity, session)

    @staticmethod
    async def release_items(items: list[OrderItemDTO], session: AsyncSession | Session) -> None:
        """Inverse of commit_items. Caller owns the transaction."""
        for item in items:
            await StockService.increment(item.product_id, item.quantity, item.variant_label, item.color_name, session)
            await StockService.revert_sale(item.product_id, item.quantity, session)
