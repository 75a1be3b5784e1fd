"""Executable and matcher plugins for dnspipe query chains."""