import pytest

from allocator.models import Item, Submission


def make_submission(user_id, order, ranked_items, submitted_at=0, name=None):
    return Submission(
        id=user_id,
        name=name or user_id.upper(),
        order=order,
        ranked_items=ranked_items,
        submitted_at=submitted_at,
    )


def by_user(results, user_id):
    return next(r for r in results if r.user_id == user_id)


@pytest.fixture
def two_users():
    return [
        make_submission("u1", 1, ["A", "B"], 1000),
        make_submission("u2", 2, ["A", "B"], 1001),
    ]


@pytest.fixture
def three_users():
    return [
        make_submission("u1", 1, ["A", "B", "C"], 1),
        make_submission("u2", 2, ["B", "C", "A"], 2),
        make_submission("u3", 3, ["C", "B", "A"], 3),
    ]


@pytest.fixture
def catalog():
    return [
        Item("1", localidad="Madrid", centro="C1"),
        Item("2", localidad="Madrid", centro="C2"),
        Item("3", localidad="Sevilla", centro="C3"),
        Item("4", localidad="Sevilla", centro="C1"),
    ]


@pytest.fixture
def season_records():
    items = [
        {"Vacante": i, "Localidad": "Madrid" if i <= 10 else "Sevilla", "Centro de destino": f"C{i % 3}"}
        for i in range(1, 31)
    ]
    submissions = [
        {"id": "u1", "name": "Ana", "order": 1, "rankedItems": [1, 2, 3], "submittedAt": 100},
        {"id": "u2", "name": "Luis", "order": 2, "rankedItems": ["1", "4", "2"], "submittedAt": 200},
        {"id": "u3", "name": "Eva", "order": 4, "rankedItems": [2, 5, 6], "submittedAt": 300},
    ]
    return items, submissions
