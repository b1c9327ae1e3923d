"""Main entry point for gh-feedback."""

from ghfeedback.cli import main

if __name__ == "__main__":
    main()
