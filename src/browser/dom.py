"""DOM reads and clicks shared by the authenticator, refresher and extractor.

Each helper runs a small script in a page or frame and hands plain data back
to the rules in ``src.browser.matchers``.
"""

from typing import Any

import structlog
from playwright.async_api import Frame, Page
from playwright.async_api import TimeoutError as PlaywrightTimeoutError

from src.browser.matchers import MatcherRule, TableRow, select_candidate

logger = structlog.get_logger(__name__)

COLLECT_CANDIDATES_JS = """
(selector) => Array.from(document.querySelectorAll(selector)).map((el, index) => ({
    index,
    text: (el.innerText || '').trim(),
    value: (el.value === undefined || el.value === null) ? '' : String(el.value).trim(),
    icon_classes: [el, ...el.querySelectorAll('i, span, img')]
        .map(node => typeof node.className === 'string' ? node.className : '')
        .join(' '),
    visible: el.offsetParent !== null,
}))
"""

CLICK_CANDIDATE_JS = """
([selector, index]) => {
    const el = document.querySelectorAll(selector)[index];
    if (!el) return false;
    el.click();
    return true;
}
"""

READ_ROWS_JS = """
() => Array.from(document.querySelectorAll('tr')).map(row => {
    const cells = Array.from(row.cells || []);
    const text = cell => (cell.innerText || cell.textContent || '').trim();
    return {
        cells: cells.map(text),
        data: cells.filter(cell => cell.tagName === 'TD').map(text),
    };
})
"""

BODY_TEXT_JS = "() => document.body ? document.body.innerText : ''"


async def click_first_match(
    target: Page | Frame, selector: str, rules: list[MatcherRule]
) -> str | None:
    """Click the first visible control matched by ``rules``.

    Returns:
        Name of the rule that fired, or None when nothing matched.
    """
    candidates: list[dict[str, Any]] = await target.evaluate(COLLECT_CANDIDATES_JS, selector)
    match = select_candidate(candidates, rules)
    if match is None:
        logger.debug("no_control_matched", candidates=len(candidates))
        return None

    index, rule_name = match
    clicked = await target.evaluate(CLICK_CANDIDATE_JS, [selector, index])
    if not clicked:
        logger.warning("control_vanished_before_click", rule=rule_name, index=index)
        return None

    logger.debug("control_clicked", rule=rule_name, index=index)
    return rule_name


async def read_rows(target: Page | Frame) -> list[TableRow]:
    raw_rows = await target.evaluate(READ_ROWS_JS)
    return [TableRow.from_dict(raw) for raw in raw_rows]


async def body_text(target: Page | Frame) -> str:
    return await target.evaluate(BODY_TEXT_JS) or ""


async def navigate(page: Page, url: str) -> bool:
    """Go to ``url`` and wait for network idle.

    A timeout is logged and swallowed so callers continue best-effort.

    Returns:
        False if the navigation timed out.
    """
    logger.debug("navigating_to_url", url=url)
    try:
        await page.goto(url, wait_until="networkidle")
    except PlaywrightTimeoutError as e:
        logger.warning("navigation_timeout", url=url, error=str(e))
        return False
    logger.debug("navigation_complete", url=page.url)
    return True
