"""Student portal backend: magic-link auth and student record hydration."""
