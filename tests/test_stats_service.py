"""Tests for site stats and the visit counter."""

from services.stats import StatsService


def test_stats_totals(mock_store):
    mock_store.count_projects.return_value = 42
    mock_store.get_project_totals.return_value = {"forks": 1200, "contributors": 310}

    stats = StatsService(mock_store).get_stats()

    assert stats.total_projects == 42
    assert stats.total_commits == 1200
    assert stats.total_contributors == 310
    assert stats.to_api() == {"totalProjects": 42, "totalCommits": 1200, "totalContributors": 310}


def test_first_visit_creates_counter(mock_store):
    mock_store.get_visit.return_value = None
    mock_store.create_visit.return_value = {"id": 1, "count": 1}

    visit = StatsService(mock_store).track_visit()

    assert visit.count == 1
    mock_store.create_visit.assert_called_once_with(count=1)
    mock_store.update_visit_count.assert_not_called()


def test_visit_increments_counter(mock_store):
    mock_store.get_visit.return_value = {"id": 7, "count": 99}
    mock_store.update_visit_count.return_value = {"id": 7, "count": 100}

    visit = StatsService(mock_store).track_visit()

    assert visit.count == 100
    mock_store.update_visit_count.assert_called_once_with(7, 100)


def test_users_visited_without_counter(mock_store):
    mock_store.get_visit.return_value = None
    assert StatsService(mock_store).get_users_visited().count == 0


def test_users_visited(mock_store):
    mock_store.get_visit.return_value = {"id": 7, "count": 12}
    assert StatsService(mock_store).get_users_visited().count == 12


def test_visit_row_with_timestamps(mock_store):
    mock_store.get_visit.return_value = {
        "id": 7,
        "count": 5,
        "created_at": "2024-05-01T10:00:00+00:00",
        "updated_at": "2024-05-02T08:30:00.123456+00:00",
    }
    mock_store.update_visit_count.return_value = {
        "id": 7, "count": 6, "created_at": "2024-05-01T10:00:00+00:00",
        "updated_at": "2024-05-03T09:00:00+00:00",
    }

    assert StatsService(mock_store).track_visit().count == 6
    mock_store.update_visit_count.assert_called_once_with(7, 6)
