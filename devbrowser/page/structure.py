"""
Text views of the page for readers that cannot look at pixels.
"""

from __future__ import annotations

import json

from devbrowser.interfaces import ControlChannel

STRUCTURE_JS = r"""
(() => {
    const getStructure = (el, depth = 0) => {
        if (depth > 12 || !el) return '';

        const tag = el.tagName.toLowerCase();
        const indent = '  '.repeat(depth);
        const style = window.getComputedStyle(el);

        if (style.display === 'none' || style.visibility === 'hidden' || style.opacity === '0') return '';

        const directText = Array.from(el.childNodes)
            .filter(n => n.nodeType === 3)
            .map(n => n.textContent.trim())
            .filter(t => t)
            .join(' ');

        let result = indent + '<' + tag;
        if (el.id) result += ' id="' + el.id + '"';

        if (el.className && typeof el.className === 'string') {
            const classes = el.className.split(/\s+/).filter(c => c).join(' ');
            if (classes) result += ' class="' + classes + '"';
        }

        const attrs = ['role', 'aria-label', 'placeholder', 'name', 'type'];
        for (const attr of attrs) {
            const v = el.getAttribute(attr);
            if (v) result += ' ' + attr + '="' + v + '"';
        }
        if (el.value && tag !== 'body') result += ' value="' + el.value + '"';
        for (const attr of ['href', 'src', 'alt', 'title']) {
            const v = el.getAttribute(attr);
            if (v) result += ' ' + attr + '="' + v + '"';
        }

        const styles = [];
        if (style.display !== 'block' && style.display !== 'inline' && style.display !== 'inline-block') {
            styles.push('display:' + style.display);
            if (style.display === 'flex') styles.push('FLEX');
            if (style.display === 'grid') styles.push('GRID');
        }
        if (style.position !== 'static') styles.push('position:' + style.position);
        if (style.position === 'absolute' || style.position === 'fixed') {
            styles.push('top:' + style.top);
            styles.push('left:' + style.left);
        }

        const clickable = style.cursor === 'pointer' ||
            ['button', 'a', 'input', 'select'].includes(tag);
        if (clickable) styles.push('clickable');

        if (styles.length > 0) result += ' [' + styles.join(' ') + ']';
        result += '>';

        if (directText) result += ' ' + directText;
        result += '\n';

        Array.from(el.children).forEach(child => {
            result += getStructure(child, depth + 1);
        });

        return result;
    };
    return getStructure(document.body);
})()
"""

INSPECT_ELEMENT_JS = r"""
(selector) => {
    const el = document.querySelector(selector);
    if (!el) return JSON.stringify({ error: 'Element not found: ' + selector });

    const rect = el.getBoundingClientRect();
    const style = window.getComputedStyle(el);
    const sides = (prefix, suffix = '') => ({
        top: parseFloat(style[prefix + 'Top' + suffix]),
        right: parseFloat(style[prefix + 'Right' + suffix]),
        bottom: parseFloat(style[prefix + 'Bottom' + suffix]),
        left: parseFloat(style[prefix + 'Left' + suffix])
    });

    return JSON.stringify({
        identity: {
            tagName: el.tagName.toLowerCase(),
            id: el.id || null,
            className: el.className || null,
            name: el.getAttribute('name')
        },
        boxModel: {
            width: rect.width,
            height: rect.height,
            padding: sides('padding'),
            margin: sides('margin'),
            border: sides('border', 'Width')
        },
        position: {
            type: style.position,
            top: rect.top,
            left: rect.left,
            right: rect.right,
            bottom: rect.bottom,
            offsetTop: el.offsetTop,
            offsetLeft: el.offsetLeft,
            scrollTop: el.scrollTop,
            scrollLeft: el.scrollLeft
        },
        layout: {
            display: style.display,
            flexDirection: style.flexDirection,
            justifyContent: style.justifyContent,
            alignItems: style.alignItems,
            gridTemplateColumns: style.gridTemplateColumns,
            gridTemplateRows: style.gridTemplateRows,
            gap: style.gap,
            overflow: style.overflow,
            zIndex: style.zIndex
        },
        typography: {
            fontFamily: style.fontFamily,
            fontSize: style.fontSize,
            fontWeight: style.fontWeight,
            lineHeight: style.lineHeight,
            textAlign: style.textAlign,
            color: style.color
        },
        background: {
            color: style.backgroundColor,
            image: style.backgroundImage !== 'none' ? style.backgroundImage : null
        },
        accessibility: {
            role: el.getAttribute('role'),
            ariaLabel: el.getAttribute('aria-label'),
            ariaDescribedBy: el.getAttribute('aria-describedby'),
            tabIndex: el.tabIndex,
            isKeyboardFocusable: el.tabIndex >= 0 || ['A', 'BUTTON', 'INPUT', 'SELECT', 'TEXTAREA'].includes(el.tagName)
        }
    }, null, 2);
}
"""


async def get_page_structure(channel: ControlChannel) -> str:
    """URL, title and viewport header followed by the visible element tree."""
    info = await channel.evaluate(
        "({url: location.href, title: document.title, width: window.innerWidth, height: window.innerHeight})"
    ) or {}
    structure = await channel.evaluate(STRUCTURE_JS) or ""
    return (
        f"URL: {info.get('url', '')}\n"
        f"Title: {info.get('title', '')}\n"
        f"Viewport: {info.get('width', 0)}x{info.get('height', 0)}\n\n"
        f"{structure}"
    )


async def inspect_element(channel: ControlChannel, selector: str) -> str:
    """DevTools-style box model, layout and style report for one element."""
    result = await channel.evaluate(f"({INSPECT_ELEMENT_JS})({json.dumps(selector)})")
    return f"Inspect Element: {selector}\n{result}"
