"""Runtime discovery of form controls on the current page."""

import logging
import re

from playwright.async_api import Page

from src.automation.models import FieldDescriptor, FieldKind, FieldOption

logger = logging.getLogger(__name__)

# Option texts that mean "nothing chosen yet"
PLACEHOLDER_RE = re.compile(r"^\s*(-{2,}|select\b|choose\b|please\b)|^\s*(none|empty)\s*$", re.I)

IDENTITY_LABEL_RE = re.compile(r"^(first\s*name|last\s*name|email|phone|country)$", re.I)
IDENTITY_ATTR_RE = re.compile(r"^(first|last|email|phone|country)", re.I)
COUNTRY_LABEL_RE = re.compile(r"\b(country|nationality)\b|\blocation\s*$", re.I)
COUNTRY_ATTR_RE = re.compile(r"country|nationality", re.I)

SCAN_FIELDS_JS = """
() => {
    let counter = window.__autoapplyCounter || 0;
    const TRIGGER = 'button, div[role="button"], div[role="combobox"], [aria-haspopup="listbox"]';
    const PLACEHOLDER = /^\\s*(-{2,}|select\\b|choose\\b|please\\b)|^\\s*(none|empty)\\s*$/i;
    const tag = (el) => {
        if (!el.dataset.autoapplyId) el.dataset.autoapplyId = String(++counter);
        return `[data-autoapply-id="${el.dataset.autoapplyId}"]`;
    };
    const text = (el) => (el && el.textContent ? el.textContent.trim() : '');
    const visible = (el) => {
        const r = el.getBoundingClientRect();
        return r.width > 0 && r.height > 0;
    };
    const labelFor = (el) => {
        if (el.id) {
            const l = document.querySelector(`label[for="${CSS.escape(el.id)}"]`);
            if (l) return text(l);
        }
        const wrap = el.closest('label');
        if (wrap) return text(wrap);
        const aria = el.getAttribute('aria-label');
        if (aria) return aria.trim();
        const by = el.getAttribute('aria-labelledby');
        if (by && document.getElementById(by)) return text(document.getElementById(by));
        const box = el.closest('fieldset, [class*="field"], [class*="question"]');
        if (box) {
            const l = box.querySelector('label, legend');
            if (l) return text(l);
        }
        return '';
    };
    const isRequired = (el, label) =>
        el.required ||
        el.getAttribute('aria-required') === 'true' ||
        label.includes('*') ||
        /required/i.test(label) ||
        !!el.closest('.required');
    const base = (el, kind) => {
        const label = labelFor(el);
        return {
            kind,
            selector: tag(el),
            label,
            required: isRequired(el, label),
            field_id: el.id || '',
            field_name: el.getAttribute('name') || '',
            placeholder: el.getAttribute('placeholder') || '',
        };
    };
    const fields = [];

    const textInputs = document.querySelectorAll(
        'input:not([type]), input[type="text"], input[type="email"], input[type="tel"], ' +
        'input[type="url"], input[type="number"], textarea'
    );
    for (const el of textInputs) {
        if (el.disabled || el.readOnly || !visible(el)) continue;
        if (el.getAttribute('role') === 'combobox' || el.getAttribute('aria-autocomplete')) continue;
        fields.push({
            ...base(el, 'text'),
            value: el.value || '',
            input_type: el.tagName === 'TEXTAREA' ? 'textarea' : (el.type || 'text'),
        });
    }

    for (const el of document.querySelectorAll('input[type="checkbox"]')) {
        if (el.disabled) continue;
        fields.push({...base(el, 'checkbox'), checked: el.checked, input_type: 'checkbox'});
    }

    for (const el of document.querySelectorAll('select')) {
        if (el.disabled) continue;
        const options = Array.from(el.options).map((o) => ({value: o.value, text: o.text.trim()}));
        const selected = Array.from(el.selectedOptions)
            .filter((o) => o.value !== '' && !PLACEHOLDER.test(o.text))
            .map((o) => o.text.trim());
        fields.push({
            ...base(el, el.multiple ? 'multi_select' : 'select'),
            value: selected.join(', '),
            options,
            input_type: 'select',
        });
    }

    const triggers = new Set();
    for (const el of document.querySelectorAll('[role="combobox"], [aria-haspopup="listbox"]')) {
        if (el.tagName !== 'SELECT') triggers.add(el);
    }
    for (const label of document.querySelectorAll('label')) {
        if (!text(label).includes('*')) continue;
        let trigger = null;
        const forId = label.getAttribute('for');
        if (forId) {
            const target = document.getElementById(forId);
            if (target && ['INPUT', 'SELECT', 'TEXTAREA'].includes(target.tagName)
                && target.getAttribute('role') !== 'combobox') continue;
            if (target && target.matches(TRIGGER)) trigger = target;
        }
        if (!trigger && label.parentElement) trigger = label.parentElement.querySelector(TRIGGER);
        let sibling = label.nextElementSibling;
        while (!trigger && sibling) {
            trigger = sibling.matches(TRIGGER) ? sibling : sibling.querySelector(TRIGGER);
            sibling = sibling.nextElementSibling;
        }
        if (trigger) triggers.add(trigger);
    }
    for (const el of triggers) {
        if (el.type === 'submit' || /submit|apply|autofill/i.test(text(el))) continue;
        const box = el.closest('[class*="container"], [class*="select"]') || el.parentElement;
        const shown = box ? box.querySelector('[class*="singleValue"], [class*="single-value"]') : null;
        fields.push({
            ...base(el, 'custom_menu'),
            value: text(shown) || (el.value || '').trim() || (el.tagName === 'INPUT' ? '' : text(el)),
            input_type: 'custom_menu',
        });
    }

    window.__autoapplyCounter = counter;
    return fields;
}
"""


def is_placeholder_text(text: str) -> bool:
    return not text.strip() or bool(PLACEHOLDER_RE.search(text))


def valid_options(options: list[FieldOption]) -> list[FieldOption]:
    """Options that represent a real choice."""
    return [
        o
        for o in options
        if o.value.strip() and not is_placeholder_text(o.text)
    ]


def has_valid_value(field: FieldDescriptor) -> bool:
    return bool(field.value.strip()) and not is_placeholder_text(field.value)


def is_identity_field(field: FieldDescriptor) -> bool:
    """Name, email, phone and country fields are left to the board's autofill."""
    if IDENTITY_LABEL_RE.match(field.question):
        return True
    return any(IDENTITY_ATTR_RE.match(attr) for attr in (field.field_id, field.field_name) if attr)


def is_country_field(field: FieldDescriptor) -> bool:
    if COUNTRY_LABEL_RE.search(field.question):
        return True
    return any(COUNTRY_ATTR_RE.search(attr) for attr in (field.field_id, field.field_name) if attr)


class FieldScanner:
    """Builds FieldDescriptors for every fillable control on a page.

    Each scanned element is tagged with a ``data-autoapply-id`` attribute so
    descriptors can address it again with a plain selector.
    """

    async def scan(self, page: Page) -> list[FieldDescriptor]:
        raw_fields = await page.evaluate(SCAN_FIELDS_JS)
        fields = []
        for raw in raw_fields:
            raw["kind"] = FieldKind(raw["kind"])
            raw["options"] = [FieldOption(**o) for o in raw.get("options", [])]
            fields.append(FieldDescriptor(**raw))

        required = sum(1 for f in fields if f.required)
        logger.info(f"Scanned {len(fields)} fields ({required} required)")
        return fields
