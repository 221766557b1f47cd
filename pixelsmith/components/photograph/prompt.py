PHOTOGRAPHER_PROMPT = """A {vibe} image for the "{name}" element of a web interface: {description}.
Seamless, high resolution, no text, no watermark, no UI chrome."""
