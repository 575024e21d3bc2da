#!/usr/bin/python3
# -*- coding: utf-8 -*-
"""
Built-in log formats.

Each format is a registered schema: use it by name with
AccessLogParser('apache_combined') or splice it into another schema with
g.use('apache_combined').
"""
from element_groups import register_schema


def _plus_to_space(value):
    return value.replace('+', ' ')


def _milliseconds_to_seconds(value):
    return value / 1000.0


@register_schema('apache_common')
def apache_common(g):
    """%h %l %u %t \"%r\" %>s %b"""
    g.ip('remote_host')
    g.string('logname', nil_on='-')
    g.string('user', nil_on='-')
    with g.surrounded_by('[', ']') as s:
        s.date_ncsa('time')
    with g.double_quoted() as q:
        with q.optional('first_request_line') as r:
            r.string('method', nil_on='')
            r.string('uri', nil_on='')
            r.string('protocol', nil_on='')
    g.integer('status')
    g.integer('response_size', nil_on='-')


@register_schema('apache_vhost_common')
def apache_vhost_common(g):
    """%v %h %l %u %t \"%r\" %>s %b"""
    g.string('vhost')
    g.use('apache_common')


@register_schema('apache_combined')
def apache_combined(g):
    """%h %l %u %t \"%r\" %>s %b \"%{Referer}i\" \"%{User-agent}i\""""
    g.use('apache_common')
    g.double_quoted().string('referer', nil_on='-')
    g.double_quoted().string('user_agent', nil_on='-')


@register_schema('apache_referer')
def apache_referer(g):
    """%{Referer}i -> %U"""
    with g.separated_with(' -> ') as s:
        s.string('referer', nil_on='-')
        s.string('url')


@register_schema('apache_user_agent')
def apache_user_agent(g):
    """%{User-agent}i"""
    g.string('user_agent', greedy=True, nil_on='-')


@register_schema('icecast')
def icecast(g):
    """Combined format followed by the listening duration in seconds"""
    g.use('apache_combined')
    g.integer('duration')


@register_schema('iis')
def iis(g):
    """
    IIS W3C extended log with the default field set:
    date time s-ip cs-method cs-uri-stem cs-uri-query s-port cs-username
    c-ip cs(User-Agent) sc-status sc-substatus sc-win32-status time-taken
    """
    g.skip_line(r'^#')
    g.date_iis('time')
    g.ip('server_ip')
    g.string('method')
    g.string('url')
    g.string('query', nil_on='-')
    g.integer('port')
    g.string('username', nil_on='-')
    g.ip('client_ip')
    g.string('user_agent', nil_on='-', process=_plus_to_space)
    g.integer('status')
    g.integer('substatus')
    g.integer('win32_status')
    g.integer('duration', process=_milliseconds_to_seconds)
