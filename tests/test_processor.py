"""Tests for the per-mailbox labeling pipeline."""

from conftest import FakeMailbox, ScriptedClassifier

from gmail_labeler.config import LabelerConfig
from gmail_labeler.models import Label
from gmail_labeler.processor import MessageProcessor


def test_three_messages_labeled_with_fallback(config, mailbox):
    mailbox.add_message("m1", "Weekly digest")
    mailbox.add_message("m2", "Server down")
    mailbox.add_message("m3", "50% off")
    classifier = ScriptedClassifier(
        {"Weekly digest": "Newsletter", "Server down": "Urgent", "50% off": "Promo"}
    )

    result = MessageProcessor(config).run(mailbox, classifier)

    assert [(p.subject, p.category) for p in result] == [
        ("Weekly digest", "Newsletter"),
        ("Server down", "Urgent"),
        ("50% off", "Spam or Ignore"),
    ]
    assert mailbox.label_names("m1") == ["INBOX", "UNREAD", "Newsletter"]
    assert mailbox.label_names("m2") == ["INBOX", "UNREAD", "Urgent"]
    assert mailbox.label_names("m3") == ["INBOX", "UNREAD", "Spam or Ignore"]
    assert sorted(c[1] for c in mailbox.calls_to("create_label")) == [
        "Newsletter",
        "Spam or Ignore",
        "Urgent",
    ]


def test_second_run_applies_no_labels(config, mailbox, classifier):
    mailbox.add_message("m1", "One")
    mailbox.add_message("m2", "Two")
    processor = MessageProcessor(config)

    assert len(processor.run(mailbox, classifier)) == 2
    mailbox.calls.clear()
    classifier.calls.clear()

    assert processor.run(mailbox, classifier) == []
    assert mailbox.calls_to("add_label") == []
    assert mailbox.calls_to("get_message") == []
    assert classifier.calls == []


def test_already_labeled_message_is_not_fetched(config, mailbox, classifier):
    mailbox.labels.append(Label("Label_nl", "Newsletter"))
    mailbox.add_message("m1", "Old news", label_ids=["INBOX", "UNREAD", "Label_nl"])
    mailbox.add_message("m2", "Fresh")

    result = MessageProcessor(config).run(mailbox, classifier)

    assert [p.message_id for p in result] == ["m2"]
    assert ("get_message", "m1") not in mailbox.calls
    assert all(c[1] != "m1" for c in mailbox.calls_to("add_label"))
    assert [c["subject"] for c in classifier.calls] == ["Fresh"]


def test_each_message_gets_exactly_one_managed_label(config, mailbox):
    for i in range(6):
        mailbox.add_message(f"m{i}", f"Subject {i}")
    classifier = ScriptedClassifier(default="Urgent")

    MessageProcessor(config).run(mailbox, classifier)

    managed = {"Newsletter", "Urgent", "Spam or Ignore"}
    for i in range(6):
        names = mailbox.label_names(f"m{i}")
        assert len([n for n in names if n in managed]) == 1
    assert len(mailbox.calls_to("create_label")) == 1


def test_existing_label_matched_case_insensitively(config, mailbox, classifier):
    mailbox.labels.append(Label("Label_x", "NEWSLETTER"))
    mailbox.add_message("m1", "Digest")

    result = MessageProcessor(config).run(mailbox, classifier)

    assert result[0].label_id == "Label_x"
    assert mailbox.calls_to("create_label") == []


def test_failing_message_does_not_abort_batch(config, mailbox):
    mailbox.add_message("m1", "Broken")
    mailbox.add_message("m2", "Fine")
    mailbox.add_message("m3", "Unreachable")
    mailbox.fail_get = {"m3"}
    classifier = ScriptedClassifier({"Broken": RuntimeError("rate limited")})

    result = MessageProcessor(config).run(mailbox, classifier)

    assert [p.message_id for p in result] == ["m2"]
    assert mailbox.label_names("m1") == ["INBOX", "UNREAD"]
    assert mailbox.label_names("m3") == ["INBOX", "UNREAD"]


def test_unread_flag_is_left_alone(config, mailbox, classifier):
    mailbox.add_message("m1", "Hello")

    MessageProcessor(config).run(mailbox, classifier)

    assert "UNREAD" in mailbox.messages["m1"].label_ids
    (call,) = mailbox.calls_to("add_label")
    assert call[2] != "UNREAD"


def test_batch_size_bounds_listing(mailbox, classifier):
    for i in range(8):
        mailbox.add_message(f"m{i}", f"Subject {i}")
    config = LabelerConfig(categories=("Newsletter",), batch_size=3)

    result = MessageProcessor(config).run(mailbox, classifier)

    assert mailbox.calls_to("list_unread") == [("list_unread", 3)]
    assert len(result) == 3


def test_body_is_truncated_before_classification(config, mailbox, classifier):
    mailbox.add_message("m1", "Long", body="x" * 500)

    MessageProcessor(config).run(mailbox, classifier)

    assert len(classifier.calls[0]["body"]) == config.body_char_limit


def test_empty_inbox_skips_label_listing(config, classifier):
    mailbox = FakeMailbox()

    assert MessageProcessor(config).run(mailbox, classifier) == []
    assert mailbox.calls_to("list_labels") == []


def test_classifier_output_with_whitespace_is_accepted(config, mailbox):
    mailbox.add_message("m1", "Alert")
    classifier = ScriptedClassifier({"Alert": "  Urgent\n"})

    (entry,) = MessageProcessor(config).run(mailbox, classifier)

    assert entry.category == "Urgent"
