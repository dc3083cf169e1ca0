"""Tests for StageRecord mutations."""
from datetime import date

from talent_signup.models.record import NetworkContact, StageRecord

from conftest import make_file


class TestSkills:
    def test_add_is_idempotent(self):
        record = StageRecord()
        assert record.add_skill("Python") is True
        assert record.add_skill("Python") is False
        assert record.add_skill("  Python ") is False
        assert record.skills == ["Python"]

    def test_blank_skill_is_ignored(self):
        record = StageRecord()
        assert record.add_skill("   ") is False
        assert record.skills == []

    def test_remove_missing_skill_is_noop(self):
        record = StageRecord()
        record.add_skill("SQL")
        assert record.remove_skill("Go") is False
        assert record.skills == ["SQL"]
        assert record.remove_skill("SQL") is True
        assert record.skills == []


class TestAvailability:
    def test_toggle_twice_restores_days(self):
        record = StageRecord()
        record.toggle_day("Mon")
        record.toggle_day("Fri")
        before = list(record.interview_availability.days)
        record.toggle_day("Mon")
        record.toggle_day("Mon")
        assert sorted(record.interview_availability.days) == sorted(before)

    def test_unknown_day_is_ignored(self):
        record = StageRecord()
        assert record.toggle_day("Funday") is False
        assert record.interview_availability.days == []

    def test_default_time_slot(self):
        record = StageRecord()
        assert record.interview_availability.time_slot == "9 AM - 5 PM"
        record.set_time_slot("Flexible")
        assert record.interview_availability.time_slot == "Flexible"


class TestContacts:
    def test_incomplete_contact_is_not_added(self):
        record = StageRecord()
        record.update_new_contact("full_name", "Grace Hopper")
        record.update_new_contact("email", "grace@example.com")
        assert record.add_contact() is False
        assert record.network_contacts == []
        assert record.new_contact.full_name == "Grace Hopper"

    def test_complete_contact_is_appended_and_draft_reset(self):
        record = StageRecord()
        record.update_new_contact("full_name", "Grace Hopper")
        record.update_new_contact("email", "grace@example.com")
        record.update_new_contact("position", "Manager")
        assert record.add_contact() is True
        assert record.network_contacts == [
            NetworkContact(full_name="Grace Hopper", email="grace@example.com", position="Manager")
        ]
        assert record.new_contact == NetworkContact()

    def test_remove_contact_out_of_range(self, filled_record):
        assert filled_record.remove_contact(5) is False
        assert filled_record.remove_contact(-1) is False
        assert len(filled_record.network_contacts) == 1
        assert filled_record.remove_contact(0) is True
        assert filled_record.network_contacts == []


class TestBirthDate:
    def test_parts_compose_iso_date(self):
        record = StageRecord()
        record.set_birth_date_part("year", "1990")
        assert record.date_of_birth == ""
        record.set_birth_date_part("month", 12)
        record.set_birth_date_part("day", 10)
        assert record.date_of_birth == "1990-12-10"

    def test_impossible_date_is_not_composed(self):
        record = StageRecord()
        record.set_birth_date_part("year", 2001)
        record.set_birth_date_part("month", 2)
        record.set_birth_date_part("day", 30)
        assert record.date_of_birth == ""

    def test_set_full_date(self):
        record = StageRecord()
        record.update("date_of_birth", date(1985, 3, 7))
        assert record.date_of_birth == "1985-03-07"
        assert record.birth_date_parts == {"year": 1985, "month": 3, "day": 7}

    def test_malformed_date_keeps_previous_value(self):
        record = StageRecord()
        record.update("date_of_birth", "1990-12-10")
        record.update("date_of_birth", "10/12/1990")
        assert record.date_of_birth == "1990-12-10"


class TestUpdate:
    def test_unknown_field_is_ignored(self):
        record = StageRecord()
        record.update("favourite_colour", "blue")
        assert not hasattr(record, "favourite_colour")

    def test_scratch_fields_are_not_settable(self):
        record = StageRecord()
        record.update("resolved_files", {"cv_file": "https://x"})
        assert record.resolved_files == {}

    def test_flags_are_coerced_to_bool(self):
        record = StageRecord()
        record.update("openai_enabled", 1)
        assert record.openai_enabled is True

    def test_skills_are_trimmed_and_deduplicated(self):
        record = StageRecord()
        record.update("skills", ["Python", "Python", " Python ", "", "SQL"])
        assert record.skills == ["Python", "SQL"]

    def test_skills_must_be_a_list(self):
        record = StageRecord()
        record.add_skill("Go")
        record.update("skills", "Python")
        assert record.skills == ["Go"]

    def test_only_complete_contacts_are_kept(self):
        record = StageRecord()
        record.update("network_contacts", [
            {"full_name": "Grace Hopper", "email": "grace@example.com", "position": "Manager"},
            {"full_name": "Half Done", "email": "", "position": "Client"},
            {"full_name": 42},
            "not a contact",
        ])
        assert record.network_contacts == [
            NetworkContact(full_name="Grace Hopper", email="grace@example.com", position="Manager")
        ]

    def test_availability_from_dict_keeps_model(self):
        record = StageRecord()
        record.update("interview_availability", {"time_slot": "Flexible", "days": ["Mon", "Mon", "Funday", "Tue"]})
        assert record.interview_availability.time_slot == "Flexible"
        assert record.interview_availability.days == ["Mon", "Tue"]
        assert record.toggle_day("Mon") is True
        assert record.interview_availability.days == ["Tue"]

    def test_malformed_availability_is_ignored(self):
        record = StageRecord()
        record.toggle_day("Fri")
        record.update("interview_availability", "weekends")
        record.update("interview_availability", {"days": "Mon"})
        assert record.interview_availability.days == ["Fri"]
        assert record.toggle_day("Sat") is True

    def test_scalar_fields_stay_strings(self):
        record = StageRecord()
        record.update("about_me", 42)
        record.update("ideal_job_title", None)
        assert record.about_me == "42"
        assert record.ideal_job_title == ""


class TestFiles:
    def test_resolve_drops_pending_bytes(self):
        record = StageRecord()
        record.update("cv_file", make_file())
        record.resolve_file("cv_file", "https://store/cv/x.pdf")
        assert record.pending_file("cv_file") is None
        assert record.file_reference("cv_file") == "https://store/cv/x.pdf"

    def test_stored_reference_wins_over_later_bytes(self):
        record = StageRecord()
        record.update("cv_file", make_file("cv.pdf"))
        record.resolve_file("cv_file", "https://store/cv/x.pdf")
        record.update("cv_file", make_file("later.pdf"))
        assert record.file_reference("cv_file") == "https://store/cv/x.pdf"
        assert record.pending_file("cv_file") is None

    def test_replacing_a_stored_file_needs_removal_first(self):
        record = StageRecord()
        record.resolve_file("cv_file", "https://store/cv/x.pdf")
        record.clear_file("cv_file")
        record.update("cv_file", make_file("new.pdf"))
        assert record.file_reference("cv_file") is None
        assert record.pending_file("cv_file").filename == "new.pdf"

    def test_non_file_value_is_ignored(self):
        record = StageRecord()
        record.update("cv_file", "cv.pdf")
        assert record.pending_file("cv_file") is None

    def test_clear_file(self):
        record = StageRecord()
        record.update("portfolio_file", make_file("p.zip"))
        record.update("portfolio_file", None)
        assert record.pending_file("portfolio_file") is None


def test_reset_restores_defaults(filled_record):
    filled_record.update("cv_file", make_file())
    filled_record.update_new_contact("full_name", "Draft")
    filled_record.reset()
    assert filled_record == StageRecord()
