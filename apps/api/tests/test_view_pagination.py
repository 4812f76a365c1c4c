import pytest

from services.errors import InvalidArgumentError
from services.views import PageRequest, Paginate, build_page


def test_second_page_metadata_for_twenty_five_docs():
    request = PageRequest.build(page=2, limit=10)
    page = build_page([{"id": str(index)} for index in range(10)], 25, request)

    assert request.skip == 10
    assert page.total_docs == 25
    assert page.total_pages == 3
    assert page.paging_counter == 11
    assert page.has_prev_page is True
    assert page.has_next_page is True
    assert page.prev_page == 1
    assert page.next_page == 3


def test_last_and_empty_pages():
    last = build_page([{"id": "x"}] * 5, 25, PageRequest.build(page=3, limit=10))
    assert last.has_next_page is False
    assert last.next_page is None

    empty = build_page([], 0, PageRequest.build())
    assert empty.total_pages == 0
    assert empty.has_prev_page is False
    assert empty.has_next_page is False
    assert empty.paging_counter == 1
    assert empty.as_dict()["docs"] == []


def test_page_request_defaults_and_coercion():
    assert PageRequest.build() == PageRequest(page=1, limit=10)
    assert PageRequest.build(default_limit=15).limit == 15
    assert PageRequest.build(page="4", limit="5") == PageRequest(page=4, limit=5)
    assert PageRequest.build(page=3, limit=20).as_stage() == Paginate(skip=40, limit=20)


@pytest.mark.parametrize(
    "page,limit",
    [(0, 10), (-1, 10), (1, 0), (1, 101), ("abc", 10), (True, 10)],
)
def test_page_request_rejects_out_of_range_values(page, limit):
    with pytest.raises(InvalidArgumentError) as exc_info:
        PageRequest.build(page=page, limit=limit)
    assert exc_info.value.status_code == 422


def test_window_slices_embedded_lists_before_expansion():
    entries = list(range(23))
    assert PageRequest.build(page=3, limit=10).window(entries) == [20, 21, 22]
    assert PageRequest.build(page=4, limit=10).window(entries) == []
