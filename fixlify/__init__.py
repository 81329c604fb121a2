"""Fixlify automation service: workflow triggers, steps, scheduler and execution log."""
