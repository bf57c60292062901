"""Audio Notes: quote-synchronized audio references embedded in documents.

WHY: A note-taking document can reference a slice of a podcast or lecture
recording, but a bare link carries no text. An audio note is a small fenced
block that names the audio source, a time range, and a transcript; this
package turns that block into a readable quote and keeps every rendered
player of the same recording in sync.

HOW: Four layers, leaves first:
  core/       time codec, transcript model, alignment, note format,
              document regeneration
  parsers/    transcript readers (JSON segment lists, SRT subtitles)
  playback/   bounded player registry, playback session, saved positions
  render.py   DOM-free view model handed to the rendering host

RULES:
- The core never performs I/O; transcript contents arrive through an
  injected async loader (see loaders.py)
- Every note block round-trips through from_src()/to_src()
- Caches are explicitly constructed and explicitly cleared, never global
"""

__version__ = "0.1.0"
