"""Build step — compiles registrations into bundles and a manifest."""
