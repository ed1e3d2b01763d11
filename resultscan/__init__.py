"""Results-lookup scanner.

This package probes an HTML results service one identifier at a time. The
lookup core (``resultscan.lookup``) fetches a form token, submits it with a
candidate identifier and classifies the returned page; the driver
(``resultscan.driver``) walks a range of candidates and hands successful
records to a sink such as the CSV writer in ``resultscan.driver.callbacks``.
"""
