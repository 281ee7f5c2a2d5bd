import logging

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import Session

from db import session_commit
from exceptions.cart import CartNotFoundException, CartItemNotFoundException
from exceptions.product import ProductNotFoundException, VariantNotFoundException, ColorNotFoundException
from models.cart import CartDTO, CartLineDTO, CartSnapshotDTO, AddToCartRequest, StockShortageDTO
from models.cartItem import CartItemDTO
from models.orderItem import OrderItemDTO
from repositories.cart import CartRepository
from repositories.cartItem import CartItemRepository
from repositories.product import ProductRepository
from services.pricing import PricingService
from services.stock import StockService


class CartService:
    """
    Per-user cart aggregate.

    Lines are unique per (product, variant, color); adding an existing
    combination increases its quantity. Totals are recomputed from current
    product prices after every mutation, an empty cart is deleted.
    """

    @staticmethod
    async def _snapshot(cart: CartDTO, session: AsyncSession | Session) -> CartSnapshotDTO:
        """Resolve lines against current products and persist the recomputed totals."""
        cart_items = await CartItemRepository.get_by_cart_id(cart.id, session)
        products = await ProductRepository.get_by_ids([cart_item.product_id for cart_item in cart_items], session)

        lines = []
        for cart_item in cart_items:
            product = products.get(cart_item.product_id)
            if product is None:
                logging.warning(f"Cart {cart.id} references missing product {cart_item.product_id}, line skipped")
                continue
            unit_price = PricingService.effective_price(product, cart_item.variant_label)
            lines.append(CartLineDTO(
                product_id=product.id,
                name=product.name,
                price=product.price,
                images=product.images,
                variant=cart_item.variant_label,
                color=cart_item.color_name,
                quantity=cart_item.quantity,
                unit_price=unit_price,
                line_total=round(unit_price * cart_item.quantity, 2)
            ))

        total_items = sum(line.quantity for line in lines)
        total_amount = round(sum(line.line_total for line in lines), 2)
        if total_items != cart.total_items or total_amount != cart.total_amount:
            await CartRepository.update_totals(cart.id, total_items, total_amount, session)

        return CartSnapshotDTO(
            id=cart.id,
            user_id=cart.user_id,
            items=lines,
            total_items=total_items,
            total_amount=total_amount
        )

    @staticmethod
    async def get_cart(user_id: int, session: AsyncSession | Session) -> CartSnapshotDTO:
        cart = await CartRepository.get_by_user_id(user_id, session)
        if cart is None:
            return CartSnapshotDTO.empty(user_id)
        snapshot = await CartService._snapshot(cart, session)
        await session_commit(session)
        return snapshot

    @staticmethod
    async def add_item(user_id: int, request: AddToCartRequest, session: AsyncSession | Session) -> CartSnapshotDTO:
        """
        Add a product selection to the user's cart, creating the cart on first use.

        Stock is not checked here; nothing is reserved until checkout.

        Raises:
            ProductNotFoundException: Product does not exist
            VariantNotFoundException / ColorNotFoundException: Selection not offered by the product
            SelectionRequiredException: Product offers variants or colors and none was picked
        """
        product = await ProductRepository.get_by_id(request.product_id, session)
        if product is None:
            raise ProductNotFoundException(request.product_id)
        variant_label = request.variant.label if request.variant else None
        color_name = request.color.name if request.color else None
        if variant_label and product.get_variant(variant_label) is None:
            raise VariantNotFoundException(product.id, variant_label)
        if color_name and product.get_color(color_name) is None:
            raise ColorNotFoundException(product.id, color_name)
        StockService.require_complete_selection(product, variant_label, color_name)

        cart = await CartRepository.get_or_create(user_id, session)
        cart_items = await CartItemRepository.get_by_cart_id(cart.id, session)
        existing_item = next((cart_item for cart_item in cart_items
                              if cart_item.matches(product.id, variant_label, color_name)), None)
        if existing_item is not None:
            await CartItemRepository.update_quantity(existing_item.id, existing_item.quantity + request.quantity,
                                                     session)
        else:
            await CartItemRepository.create(CartItemDTO(
                cart_id=cart.id,
                product_id=product.id,
                quantity=request.quantity,
                variant_label=variant_label,
                color_name=color_name
            ), session)

        snapshot = await CartService._snapshot(cart, session)
        await session_commit(session)
        logging.info(f"🛒 User {user_id} added {request.quantity}x product {product.id} to cart {cart.id}")
        return snapshot

    @staticmethod
    async def set_item_quantity(user_id: int, product_id: int, quantity: int,
                                session: AsyncSession | Session) -> CartSnapshotDTO:
        """Replace the quantity of every line holding product_id."""
        product = await ProductRepository.get_by_id(product_id, session)
        if product is None:
            raise ProductNotFoundException(product_id)
        cart = await CartRepository.get_by_user_id(user_id, session)
        if cart is None:
            raise CartNotFoundException(user_id)

        cart_items = await CartItemRepository.get_by_cart_id(cart.id, session)
        matching_items = [cart_item for cart_item in cart_items if cart_item.product_id == product_id]
        if not matching_items:
            raise CartItemNotFoundException(user_id, product_id)
        for cart_item in matching_items:
            await CartItemRepository.update_quantity(cart_item.id, quantity, session)

        snapshot = await CartService._snapshot(cart, session)
        await session_commit(session)
        return snapshot

    @staticmethod
    async def remove_item(user_id: int, product_id: int, session: AsyncSession | Session) -> CartSnapshotDTO:
        """
        Drop every line holding product_id. Removing an absent product leaves the
        cart unchanged, removing the last line deletes the cart.
        """
        cart = await CartRepository.get_by_user_id(user_id, session)
        if cart is None:
            raise CartNotFoundException(user_id)

        cart_items = await CartItemRepository.get_by_cart_id(cart.id, session)
        removed_ids = [cart_item.id for cart_item in cart_items if cart_item.product_id == product_id]
        await CartItemRepository.delete_by_ids(removed_ids, session)

        if removed_ids and len(removed_ids) == len(cart_items):
            await CartRepository.delete(cart.id, session)
            await session_commit(session)
            logging.info(f"🧹 Cart {cart.id} of user {user_id} deleted, last line removed")
            return CartSnapshotDTO.empty(user_id)

        snapshot = await CartService._snapshot(cart, session)
        await session_commit(session)
        return snapshot

    @staticmethod
    async def clear(user_id: int, session: AsyncSession | Session) -> CartSnapshotDTO:
        cart = await CartRepository.get_by_user_id(user_id, session)
        if cart is not None:
            await CartRepository.delete(cart.id, session)
            await session_commit(session)
            logging.info(f"🧹 Cart {cart.id} of user {user_id} cleared")
        return CartSnapshotDTO.empty(user_id)

    @staticmethod
    async def validate_stock(cart_id: int, session: AsyncSession | Session) -> list[StockShortageDTO]:
        """
        Report every cart line whose quantity exceeds the stock of its pool.

        Read-only. Availability comes from StockService.available_units, the
        figure checkout enforces. Lines whose product, variant or color
        disappeared are reported with 0 available.
        """
        cart_items = await CartItemRepository.get_by_cart_id(cart_id, session)
        products = await ProductRepository.get_by_ids([cart_item.product_id for cart_item in cart_items], session)

        shortages = []
        for cart_item in cart_items:
            product = products.get(cart_item.product_id)
            available = 0
            if product is not None:
                variant = product.get_variant(cart_item.variant_label)
                color = product.get_color(cart_item.color_name)
                missing_pool = ((cart_item.variant_label and variant is None)
                                or (cart_item.color_name and color is None))
                if not missing_pool:
                    available = StockService.available_units(product, variant, color)
            if cart_item.quantity > available:
                shortages.append(StockShortageDTO(
                    product_id=cart_item.product_id,
                    product_name=product.name if product is not None else "",
                    variant=cart_item.variant_label,
                    color=cart_item.color_name,
                    requested=cart_item.quantity,
                    available=available
                ))
        return shortages

    @staticmethod
    async def validate_user_cart(user_id: int, session: AsyncSession | Session) -> list[StockShortageDTO]:
        cart = await CartRepository.get_by_user_id(user_id, session)
        if cart is None:
            return []
        return await CartService.validate_stock(cart.id, session)

    @staticmethod
    async def remove_purchased_items(user_id: int, items: list[OrderItemDTO], session: AsyncSession | Session) -> None:
        """
        Remove the purchased (product, variant, color) lines from the user's cart.

        Runs inside the caller's transaction and never commits. Deletes the cart
        when no line remains.
        """
        cart = await CartRepository.get_by_user_id(user_id, session)
        if cart is None:
            return
        cart_items = await CartItemRepository.get_by_cart_id(cart.id, session)
        purchased_ids = [cart_item.id for cart_item in cart_items
                         if any(cart_item.matches(item.product_id, item.variant_label, item.color_name)
                                for item in items)]
        await CartItemRepository.delete_by_ids(purchased_ids, session)

        if len(purchased_ids) == len(cart_items):
            await CartRepository.delete(cart.id, session)
            logging.info(f"🧹 Cart {cart.id} of user {user_id} emptied by checkout")
        else:
            await CartService._snapshot(cart, session)
