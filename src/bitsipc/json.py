''' Wrapper module to select the most performant available library to handle
    the equivalent of :func:`json.loads` and :func:`json.dumps` for bits-ipc
    payloads.
'''

# msgspec is a hard requirement of the package; orjson is only consulted if
# msgspec is somehow unavailable. Both produce compact output and escape
# every control character inside strings, which is what guarantees that the
# form-feed frame delimiter never appears inside an encoded payload.

msgspec = None
orjson = None

try:
    import msgspec
except ImportError:
    pass

if msgspec is None:
    import orjson


# The msgspec 'encode' operation returns bytes, as does orjson.dumps. Callers
# can rely on dumps() returning bytes and loads() accepting bytes.

if msgspec is not None:
    encoder = msgspec.json.Encoder()
    decoder = msgspec.json.Decoder()
    dumps = encoder.encode
    loads = decoder.decode
    DecodeError = msgspec.DecodeError
    EncodeError = (msgspec.EncodeError, TypeError)
else:
    dumps = orjson.dumps
    loads = orjson.loads
    DecodeError = orjson.JSONDecodeError
    EncodeError = (orjson.JSONEncodeError, TypeError)


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
