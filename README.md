# csiproxy

Request handling for a proxy that carries out storage operations on Windows
hosts for container storage plugins. Each service checks a request and then
passes it on to a host API object that you supply. This keeps the logic easy
to drive from tests or from a transport of your own.

## Services

- `csiproxy.filesystem`: `FilesystemServer(working_dirs, host_api)` accepts
  only absolute drive-letter paths, for example `C:\var\lib\kubelet\pods\pv1`.
  A path must meet all of these rules:
  - it is at most 260 characters long;
  - it does not start with `\`;
  - it contains none of `" / : ? * |` and no `..` after the drive prefix;
  - it starts, ignoring case, with one of the working directories.

  A path that breaks a rule raises `PathValidationError`, a subclass of
  `ValueError`. Paths that pass go to your `FilesystemHostAPI`: `mkdir`,
  `rmdir`, `rmdir_contents`, `create_symlink` (or `link_path`) and
  `path_exists`. `is_symlink` and `is_mount_point` pass the path on without
  checking it.
- `csiproxy.smb`: `SmbServer(host_api, fs_server)` creates and removes SMB
  global mappings. `get_root_mapping_path` reduces a remote path to
  `\\host\share` in lower case, and `normalize_windows_path` turns `/` into
  `\`. The server behaves as follows:
  - If a mapping exists but the filesystem server reports it as not valid,
    the server removes it and maps it again.
  - A request with a `local_path` must pass `validate_plugin_path`, and the
    server then links that path to the share.
  - A failed link raises `SmbLinkError`.
- `csiproxy.iscsi`: `IscsiServer(host_api)` adds, lists, discovers and
  removes target portals, and connects to and disconnects from targets. It
  also lists target disks and sets the mutual CHAP secret. A portal port of 0
  becomes 3260. `auth_type_to_string` maps `AuthenticationType` members to
  `"NONE"`, `"ONEWAYCHAP"` and `"MUTUALCHAP"`.
- `csiproxy.volume`: `VolumeServer(host_api)` lists, formats, mounts,
  unmounts and resizes volumes. It also flushes the volume cache, reports
  volume statistics and disk numbers, and finds the volume behind a target
  path. An empty volume id or target path raises `ValueError`.
- `csiproxy.volume_conversion`: converts the older request layouts
  (`LegacyListVolumesOnDiskRequest` with a decimal `disk_id`,
  `LegacyMountVolumeRequest`, `LegacyResizeVolumeRequest`) to the current
  ones and back.
- `csiproxy.system`: `SystemServer(host_api)` reads the BIOS serial number.
  It also queries, starts and stops services, and reports them with the
  `StartType` and `ServiceStatus` enums.
- `csiproxy.utils.run_powershell_cmd(command, *env)` runs a PowerShell command
  with extra `NAME=VALUE` environment entries. It returns the combined output
  and raises `subprocess.CalledProcessError` on a non-zero exit.

A request that is invalid, or that the host API rejects, raises an exception.

Some calls kept for older clients check the caller's API version:
- `set_mutual_chap_secret` needs `v1alpha2` or newer.
- `volume_stats`, `get_volume_disk_number` and `get_volume_id_from_mount` need
  `v1beta1` or newer.

Parse versions with `csiproxy.types.parse_version`. Versions compare in the
order alpha, then beta, then GA.

## Example

```python
from csiproxy.filesystem import FilesystemServer, MkdirRequest
from csiproxy.types import parse_version


class HostFS:
    def path_exists(self, path): return True
    def path_valid(self, path): return True
    def mkdir(self, path): print("mkdir", path)
    def rmdir(self, path, force): print("rmdir", path, force)
    def rmdir_contents(self, path): print("rmdir contents", path)
    def create_symlink(self, source_path, target_path): print("link", source_path, target_path)
    def is_symlink(self, path): return False


server = FilesystemServer([r"C:\var\lib\kubelet"], HostFS())
server.mkdir(MkdirRequest(path=r"C:\var\lib\kubelet\pods\pv1"), parse_version("v1"))
```

## Filtering JUnit reports

The `filter-junit` command keeps only the test cases whose names match a
regular expression. It reads files with either a `<testsuite>` or a
`<testsuites>` root, merges all the inputs, and keeps one case per name. If a
test was skipped in one run and executed in another, the executed run is kept.
The result is written as a single indented `<testsuite>` document.

```
filter-junit -t "Volume" -o merged.xml run1.xml run2.xml
```

Use `-` as an input to read from standard input. Leave out `-o` to write to
standard output. The same steps are available as `parse_junit`,
`filter_cases` and `render_junit` in `csiproxy.junit_filter`.

## What this package does not do

This package has no network server. It does not listen on named pipes or
serve gRPC. It also has no built-in host API implementations: you supply the
objects that actually create directories, map SMB shares, talk to the iSCSI
initiator, manage volumes or control services.

## Tests

```
pip install -e ".[test]"
pytest
```