"""Browser automation modules (Playwright, async API).

``session`` owns the browser process and page, ``navigation`` loads the
portal, ``locator`` and ``submitter`` drive the lookup form, and
``extractor`` reads the balance off the result page.
"""
