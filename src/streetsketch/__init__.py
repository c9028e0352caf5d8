"""StreetSketch: turn Street View frames into artwork through async jobs.

The server side (``jobs``) accepts a job, runs it in the background and
records its terminal outcome in the job store. The client side (``client``)
submits jobs and polls the store until the outcome arrives.
"""
