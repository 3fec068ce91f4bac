"""Command-line tools for Unstream.

- ``unstream search QUERY`` -- multi-source artist search
- ``unstream enrich QUERY`` -- official site, Discogs and social links
- ``unstream check-releases --artist NAME --bandcamp URL ...`` -- freshest release
- ``unstream resolve URL`` -- artist name behind a Spotify / Apple Music link

Heavy wiring (``unstream.main``) is imported inside the entry point so
``--help`` stays fast.
"""
