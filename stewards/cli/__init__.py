"""
stewards.cli
============

Command-line tools. `python -m stewards.cli.guild --help` lists the commands.
"""
