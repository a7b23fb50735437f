"""Unit tests for legacy document normalization."""

from backend.app.schemas.idea import Idea
from backend.app.schemas.member import Member
from backend.app.schemas.report import Report, ReportHistory


class TestMemberNormalization:
    """Test cases for Member parsing."""

    def test_camel_case_fields(self):
        member = Member.model_validate({
            "id": "m1",
            "name": "太郎",
            "imageNo1": "/media/members/m1/no1_1.jpg",
            "birthDate": "1990-01-01",
        })

        assert member.image_no1 == "/media/members/m1/no1_1.jpg"
        assert member.birth_date == "1990-01-01"

    def test_lowercase_birthdate(self):
        member = Member.model_validate({"id": "m1", "birthdate": "4月1日"})

        assert member.birth_date == "4月1日"

    def test_blob_urls_are_dropped(self):
        member = Member.model_validate({
            "id": "m1",
            "imageNo1": "blob:http://localhost:3000/abc",
            "image_no2": "",
        })

        assert member.image_no1 is None
        assert member.image_no2 is None

    def test_none_and_numbers_become_text(self):
        member = Member.model_validate({"id": 7, "name": None, "hometown": 123})

        assert member.id == "7"
        assert member.name == ""
        assert member.hometown == "123"

    def test_dump_is_canonical(self):
        member = Member.model_validate({"id": "m1", "imageNo2": "/media/x.png", "unknownKey": 1})

        doc = member.to_document()

        assert doc["image_no2"] == "/media/x.png"
        assert "imageNo2" not in doc
        assert "unknownKey" not in doc


class TestReportNormalization:
    """Test cases for Report and history parsing."""

    def test_canonical_key_wins_over_legacy(self):
        report = Report.model_validate({"id": "r1", "current_trial": "新", "currentTrial": "旧"})

        assert report.current_trial == "新"

    def test_narrative_helpers(self):
        empty = Report(id="r1", nickname="たろう")
        filled = Report(id="r1", nickname="たろう", progress="進捗")

        assert not empty.has_narrative()
        assert filled.has_narrative()
        assert filled.narrative_differs(empty)
        assert not filled.narrative_differs(filled.model_copy(update={"teaser": "x"}))

    def test_history_camel_case(self):
        history = ReportHistory.model_validate({
            "weekId": "2026-W02",
            "savedAt": "2026-01-09T10:00:00+00:00",
            "reports": [{"id": "r1", "currentTrial": "A"}],
            "embeddings": [{"reportId": "r1", "nickname": "たろう", "text": "t", "embedding": [0.1, 0.2]}],
        })

        assert history.week_id == "2026-W02"
        assert history.reports[0].current_trial == "A"
        assert history.embeddings[0].report_id == "r1"


class TestIdeaNormalization:
    """Test cases for Idea parsing."""

    def test_camel_case_fields(self):
        idea = Idea.model_validate({
            "id": "i1",
            "memberId": "m1",
            "memberName": "太郎",
            "ideaName": "録画共有",
            "rejectionReason": "  ",
            "createdAt": "2026-01-01T00:00:00+00:00",
        })

        assert idea.member_id == "m1"
        assert idea.member_name == "太郎"
        assert idea.idea_name == "録画共有"
        assert idea.rejection_reason is None
        assert idea.created_at == "2026-01-01T00:00:00+00:00"
