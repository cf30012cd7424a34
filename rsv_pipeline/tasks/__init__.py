"""Pipeline stages and orchestrated tasks.

Stage modules (`ingest`, `normalize`, `epiweek`, `smooth`, `persist`) hold pure
DataFrame functions. Task modules decorate an entry point with
`@orchestrator.task(name=..., inputs=[...], outputs=[...])`: `clean` chains the
stages, `diagnostics` renders fit figures from the cleaned table.
"""
