"""Core modules for the metrics dashboard application."""

from . import config, controller, errors, features, identity, insights, records, session, store, synth, utils, validate, viz

__all__ = [
	"config",
	"controller",
	"errors",
	"features",
	"identity",
	"insights",
	"records",
	"session",
	"store",
	"synth",
	"utils",
	"validate",
	"viz",
]
