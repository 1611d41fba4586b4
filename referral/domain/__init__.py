"""Pure domain helpers (no I/O): ids, slugs and alternate-key matching."""
