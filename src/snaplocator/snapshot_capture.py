from __future__ import annotations

from datetime import datetime, timezone
from typing import TYPE_CHECKING, Any

from .snapshot import Snapshot, parse_snapshot

if TYPE_CHECKING:
    from playwright.sync_api import Page

_CAPTURE_SCRIPT = """
() => {
  const skipped = new Set(['script', 'style', 'noscript', 'template']);
  let counter = 0;

  const directText = (el) => {
    const chunks = [];
    for (const child of Array.from(el.childNodes || [])) {
      if (child.nodeType === Node.TEXT_NODE) {
        const value = (child.textContent || '').trim();
        if (value) chunks.push(value);
      }
    }
    return chunks.join(' ');
  };

  const capture = (el) => {
    const tag = (el.tagName || '').toLowerCase();
    if (!tag || skipped.has(tag)) return null;

    counter += 1;
    const attributes = {};
    for (const attr of Array.from(el.attributes || [])) {
      if (attr.name === 'class' || attr.name === 'id') continue;
      attributes[attr.name] = attr.value;
    }

    const children = [];
    for (const child of Array.from(el.children || [])) {
      const captured = capture(child);
      if (captured) children.push(captured);
    }

    const node = {
      uid: 'e' + counter,
      tag,
      attributes,
      children,
    };
    if (el.id) node.id = el.id;
    const classes = Array.from(el.classList || []);
    if (classes.length) node.class = classes.join(' ');
    const text = directText(el);
    if (text) node.text = text;
    return node;
  };

  const root = document.body ? capture(document.body) : null;
  return {
    url: location.href || '',
    elements: root ? [root] : [],
  };
}
"""


def capture_snapshot_payload(page: Page) -> dict[str, Any]:
    payload: dict[str, Any] = dict(page.evaluate(_CAPTURE_SCRIPT) or {})
    payload.setdefault("elements", [])
    payload.setdefault("timestamp", datetime.now(timezone.utc).isoformat())
    return payload


def capture_snapshot(page: Page) -> Snapshot:
    return parse_snapshot(capture_snapshot_payload(page))
