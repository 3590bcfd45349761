from views.admin import tests_view


def test_status_index_for_known_status():
    assert tests_view._status_index("draft") == 0
    assert tests_view._status_index("archived") == 2


def test_status_index_falls_back_for_unknown_status():
    assert tests_view._status_index("retired") == 0
    assert tests_view._status_index(None) == 0
