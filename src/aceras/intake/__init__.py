"""Report intake: vocabularies, validation gate, completeness and AI drafts."""
