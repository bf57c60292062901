"""Package entry point for ``python -m audio_notes``.

WHY: Lets users run the command-line tools without installing the
console script.

HOW: Delegates to the CLI's main() function.
"""

from audio_notes.cli import main

if __name__ == "__main__":
    main()
