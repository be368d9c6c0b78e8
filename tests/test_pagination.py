import pytest

from zellinotes.pagination import Pagination


def test_empty_pagination():
    pagination = Pagination(page=None, items=None, sorting=None)

    assert pagination.is_fully_empty()
    assert not pagination.is_fully_set()


@pytest.mark.parametrize("sorting", [1, -1])
def test_fully_set_pagination(sorting):
    pagination = Pagination(page=1, items=10, sorting=sorting)

    assert pagination.is_fully_set()
    assert not pagination.is_fully_empty()


@pytest.mark.parametrize(
    "page, items, sorting",
    [
        (1, None, None),
        (None, 10, None),
        (None, None, 1),
        (1, 10, None),
        (None, 10, 1),
        (0, 10, 1),
        (1, 0, 1),
        (1, 10, 0),
        (1, 10, 2),
        (-1, 10, 1),
    ],
)
def test_partial_or_out_of_range_pagination(page, items, sorting):
    pagination = Pagination(page=page, items=items, sorting=sorting)

    assert not pagination.is_fully_set()
    assert not pagination.is_fully_empty()


def test_skip():
    assert Pagination(page=1, items=5, sorting=1).skip == 0
    assert Pagination(page=3, items=5, sorting=-1).skip == 10


def test_skip_requires_fully_set_pagination():
    with pytest.raises(ValueError):
        Pagination(page=2).skip


def test_from_args():
    assert Pagination.from_args({"page": "2", "items": "20", "sorting": "-1"}) == Pagination(2, 20, -1)
    assert Pagination.from_args({}) == Pagination()
    assert Pagination.from_args({"page": ""}).is_fully_empty()


def test_from_args_rejects_non_integers():
    with pytest.raises(ValueError):
        Pagination.from_args({"page": "first", "items": "20", "sorting": "1"})
