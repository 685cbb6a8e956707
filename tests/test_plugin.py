import pytest

import graphene_host
from graphene_host import HostPlugin, host


class StubCollaborator:
    def __init__(self, result=None, error=None):
        self.result = result
        self.error = error
        self.calls = []

    def create_host(self, *args, **kwargs):
        self.calls.append(('create_host', args, kwargs))
        if self.error:
            raise self.error
        return self.result

    def create_session(self, *args, **kwargs):
        self.calls.append(('create_session', args, kwargs))
        if self.error:
            raise self.error
        return self.result


def test_create_host_returns_collaborator_result():
    token = {'id': 1}
    stub = StubCollaborator(result=token)
    config = {'runtime': '/usr/bin/graphene'}

    assert HostPlugin(stub).create_host(config) is token
    assert stub.calls == [('create_host', (config,), {})]
    assert stub.calls[0][1][0] is config


def test_create_session_returns_collaborator_result():
    token = object()
    stub = StubCollaborator(result=token)

    assert HostPlugin(stub).create_session('host', profile='/tmp/p') is token
    assert stub.calls == [('create_session', ('host',), {'profile': '/tmp/p'})]


@pytest.mark.parametrize('method', ['create_host', 'create_session'])
def test_errors_pass_through_unchanged(method):
    error = ValueError('bad runtime')
    plugin = HostPlugin(StubCollaborator(error=error))

    with pytest.raises(ValueError) as excinfo:
        getattr(plugin, method)({'runtime': 'x'})
    assert excinfo.value is error
    assert str(excinfo.value) == 'bad runtime'


def test_package_exports_collaborator_factories():
    assert graphene_host.create_host is host.create_host
    assert graphene_host.create_session is host.create_session
    assert graphene_host.plugin.collaborator is host


def test_package_help_descriptor():
    assert graphene_host.help is graphene_host.get_help()
    assert graphene_host.plugin.help == graphene_host.HELP
    assert graphene_host.help.as_dict()['arguments']['--runtime']['help'] == 'path to find graphene'
