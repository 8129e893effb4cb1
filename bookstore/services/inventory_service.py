import logging

from sqlalchemy import update
from sqlmodel import Session

from bookstore.errors import InsufficientInventoryError
from bookstore.models.book import Book
from bookstore.utils.clock import utcnow

logger = logging.getLogger(__name__)


def reserve_copy(session: Session, book_id: int, quantity: int = 1):
    """Take copies out of stock inside the caller's transaction.

    A single guarded UPDATE: it only matches while the book is active and has
    enough copies, so concurrent reservations can never drive stock negative.
    """
    result = session.execute(
        update(Book)
        .where(
            Book.id == book_id,
            Book.active == True,  # noqa: E712
            Book.inventory >= quantity,
        )
        .values(inventory=Book.inventory - quantity, updated_at=utcnow())
        .execution_options(synchronize_session=False)
    )

    if result.rowcount == 0:
        logger.info(f"No copy of book {book_id} left to reserve")
        raise InsufficientInventoryError("Book not in stock for rental", book_id=book_id)

    logger.info(f"Reserved {quantity} copy of book {book_id}")


def restock_copy(session: Session, book_id: int, quantity: int = 1):
    """Put returned copies back into stock inside the caller's transaction."""
    session.execute(
        update(Book)
        .where(Book.id == book_id)
        .values(inventory=Book.inventory + quantity, updated_at=utcnow())
        .execution_options(synchronize_session=False)
    )
    logger.info(f"Restocked {quantity} copy of book {book_id}")
