"""Drive Chromium through the DevTools protocol to execute automation plans."""
