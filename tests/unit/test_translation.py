import pytest

from entity_meta.translation import (
    DictTranslationStore,
    GettextTranslationStore,
    NullTranslationStore,
    locale_candidates,
)

pytestmark = pytest.mark.unit


def test_locale_candidates_fall_back_to_language_and_root():
    assert locale_candidates("pt-br") == ["pt_BR", "pt", ""]
    assert locale_candidates("pt_BR") == ["pt_BR", "pt", ""]
    assert locale_candidates("nl") == ["nl", ""]
    assert locale_candidates(None) == [""]


def test_dict_store_prefers_most_specific_bundle():
    store = DictTranslationStore(
        {
            "": {"Order.displayName": "Order", "Order.description": "All orders"},
            "pt": {"Order.displayName": "Pedido"},
            "pt-br": {"Order.displayName": "Pedido BR"},
        }
    )
    assert store.lookup("pt_BR", "Order.displayName") == "Pedido BR"
    assert store.lookup("pt", "Order.displayName") == "Pedido"
    assert store.lookup("pt_BR", "Order.description") == "All orders"
    assert store.lookup("fr", "Order.displayName") == "Order"
    assert store.lookup("fr", "Order.missing") is None


def test_dict_store_add():
    store = DictTranslationStore()
    store.add("de", "Order.displayName", "Bestellung")
    store.add("", "Order.sortOrder", "code")
    assert store.lookup("de", "Order.displayName") == "Bestellung"
    assert store.lookup("de", "Order.sortOrder") == "code"
    assert store.lookup("en", "Order.displayName") is None


def test_null_store_has_no_overrides():
    assert NullTranslationStore().lookup("en", "Order.displayName") is None


def test_gettext_store_reports_untranslated_keys_as_absent():
    assert GettextTranslationStore().lookup("en", "Order.code.displayName") is None
