"""
Allow running CredVerify as a module: ``python -m credverify``.

This delegates to the CLI entry point so that both
``credverify`` (console script) and ``python -m credverify``
behave identically.
"""

from credverify.cli import main

if __name__ == "__main__":
    main()
