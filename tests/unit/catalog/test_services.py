from decimal import Decimal

import pytest

from modules.catalog.dtos import CreateBookDTO, UpdateBookDTO
from modules.catalog.exceptions import BookAlreadyExists, BookNotFound
from modules.catalog.models import Book
from modules.catalog.repositories.django_repository import BookDjangoRepository
from modules.catalog.services import BookService

pytestmark = pytest.mark.unit


@pytest.fixture()
def service():
    return BookService(repository=BookDjangoRepository())


def _create_dto(name="Solaris", price="15.00"):
    return CreateBookDTO(
        name=name, author="Stanislaw Lem", genre="Science Fiction", price=price, pages=204
    )


class TestCreateBook:
    def test_create(self, service):
        book = service.create_book(_create_dto())
        assert Book.objects.filter(id=book.id).exists()
        assert book.price == Decimal("15.00")
        assert book.language == ""

    def test_duplicate_name_case_insensitive(self, service):
        service.create_book(_create_dto())
        with pytest.raises(BookAlreadyExists):
            service.create_book(_create_dto("SOLARIS"))

    def test_name_of_deleted_book_stays_reserved(self, service):
        book = service.create_book(_create_dto())
        service.delete_book(str(book.id))
        with pytest.raises(BookAlreadyExists):
            service.create_book(_create_dto())


class TestUpdateBook:
    def test_partial_update(self, service, book):
        updated = service.update_book(str(book.id), UpdateBookDTO(price="25.00"))
        assert updated.price == Decimal("25.00")
        assert updated.name == book.name

    def test_rename_to_existing_name(self, service, make_book):
        make_book("Taken")
        book = make_book("Free")
        with pytest.raises(BookAlreadyExists):
            service.update_book(str(book.id), UpdateBookDTO(name="taken"))

    def test_rename_changing_only_case(self, service, make_book):
        book = make_book("dune")
        updated = service.update_book(str(book.id), UpdateBookDTO(name="Dune"))
        assert updated.name == "Dune"

    def test_update_unknown(self, service):
        with pytest.raises(BookNotFound):
            service.update_book("missing", UpdateBookDTO(price="1.00"))


class TestDeleteBook:
    def test_soft_delete_hides_book(self, service, book):
        service.delete_book(str(book.id))
        with pytest.raises(BookNotFound):
            service.get_book(str(book.id))
        assert Book.objects.dead().filter(id=book.id).exists()

    def test_delete_twice(self, service, book):
        service.delete_book(str(book.id))
        with pytest.raises(BookNotFound):
            service.delete_book(str(book.id))


class TestQueries:
    def test_search_matches_name_author_or_genre(self, service, make_book):
        by_name = make_book("Foundation", author="Isaac Asimov", genre="Science Fiction")
        by_author = make_book("Emma", author="Jane Austen", genre="Romance")
        make_book("Beowulf", author="Unknown", genre="Epic")

        assert set(service.search_books("found")) == {by_name}
        assert set(service.search_books("AUSTEN")) == {by_author}
        assert set(service.search_books("science")) == {by_name}

    def test_list_excludes_deleted(self, service, make_book):
        kept = make_book()
        make_book().delete()
        assert list(service.list_books()) == [kept]
