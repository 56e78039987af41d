#    figgis/access.py - cached member accessors for Figgis.
#    Copyright (C) 2009 Shawn Sulma <genosha@470th.org>
#
#    This program is free software: you can redistribute it and/or modify
#    it under the terms of the GNU General Public License as published by
#    the Free Software Foundation, either version 3 of the License, or
#    (at your option) any later version.
#
#    This program is distributed in the hope that it will be useful,
#    but WITHOUT ANY WARRANTY; without even the implied warranty of
#    MERCHANTABILITY or FITNESS FOR A PARTICULAR PURPOSE.  See the
#    GNU General Public License for more details.
#
#    You should have received a copy of the GNU General Public License
#    along with this program.  If not, see <http://www.gnu.org/licenses/>.
r"""figgis/access.py builds and caches the functions the walker uses to read and
write members and to call its own dispatch handlers.

Resolving an attribute through the class on every access is comparatively slow when a
document has many objects of a few types.  :class:`AccessorCache` resolves each
``( type, attribute )`` pair (and each invoked function) once, producing a closure that
goes straight to the property function, slot descriptor or :func:`operator.attrgetter`,
and keeps it for the life of the process.

The closures it builds run in C or in the property's own code, which makes member access
awkward to step through in a debugger.  ``set_debug( True )`` swaps in
:class:`ReflectiveAccess`, which skips the cache and resolves everything with plain
``getattr``/``setattr`` on each call.
"""
import inspect, logging, operator, threading, types

from figgis import NoSetterError

__version__ = "0.1"
__author__ = "Shawn Sulma <genosha@470th.org>"
__all__ = [ 'NO_VALUE', 'AccessorCache', 'CompiledAccess', 'ReflectiveAccess', 'default', 'set_debug', 'debug_enabled' ]

log = logging.getLogger( __name__ )

class _NoValue ( object ) :
    __slots__ = ()
    def __repr__ ( self ) :
        return "NO_VALUE"
    def __bool__ ( self ) :
        return False

# returned by invokers of functions annotated ``-> None``
NO_VALUE = _NoValue()

def _returns_nothing ( function ) :
    try :
        annotation = inspect.signature( function ).return_annotation
    except ( TypeError, ValueError ) :
        return False
    return annotation is None or annotation == 'None'

def _static ( kind, attr ) :
    for base in inspect.getmro( kind ) :
        if attr in base.__dict__ :
            return base.__dict__[attr]
    return None

def _slotted ( kind ) :
    return all( '__dict__' not in base.__dict__ for base in inspect.getmro( kind ) if base is not object )

class CompiledAccess ( object ) :
    r"""Builds direct accessors; used (and cached) in normal operation."""
    cached = True

    def getter ( self, kind, attr ) :
        descriptor = _static( kind, attr )
        if isinstance( descriptor, property ) and descriptor.fget is not None :
            return descriptor.fget
        return operator.attrgetter( attr )

    def setter ( self, kind, attr ) :
        descriptor = _static( kind, attr )
        if isinstance( descriptor, property ) :
            if descriptor.fset is None :
                raise NoSetterError( kind, attr )
            return descriptor.fset
        if isinstance( descriptor, types.MemberDescriptorType ) :
            return descriptor.__set__
        if hasattr( type( descriptor ), '__set__' ) :
            return lambda instance, value : descriptor.__set__( instance, value )
        if descriptor is None and _slotted( kind ) :
            raise NoSetterError( kind, attr )
        def setter ( instance, value ) :
            instance.__dict__[attr] = value
        return setter

    def invoker ( self, function ) :
        if _returns_nothing( function ) :
            def invoke ( instance, args ) :
                if instance is None :
                    function( *args )
                else :
                    function( instance, *args )
                return NO_VALUE
        else :
            def invoke ( instance, args ) :
                if instance is None :
                    return function( *args )
                return function( instance, *args )
        return invoke

class ReflectiveAccess ( object ) :
    r"""Resolves members on every call; never cached.  For debugging only."""
    cached = False

    def getter ( self, kind, attr ) :
        return lambda instance : getattr( instance, attr )

    def setter ( self, kind, attr ) :
        descriptor = _static( kind, attr )
        if isinstance( descriptor, property ) and descriptor.fset is None :
            raise NoSetterError( kind, attr )
        if descriptor is None and _slotted( kind ) :
            raise NoSetterError( kind, attr )
        return lambda instance, value : setattr( instance, attr, value )

    def invoker ( self, function ) :
        def invoke ( instance, args ) :
            result = function( *args ) if instance is None else function( instance, *args )
            if _returns_nothing( function ) :
                return NO_VALUE
            return result
        return invoke

class AccessorCache ( object ) :
    r"""Process-wide store of accessor closures.  Each of the three caches has its own
    lock; entries are inserted once and never replaced or evicted."""
    def __init__ ( self, strategy = None ) :
        self.strategy = strategy or CompiledAccess()
        self.getters = {}
        self.setters = {}
        self.invokers = {}
        self._getter_lock = threading.Lock()
        self._setter_lock = threading.Lock()
        self._invoker_lock = threading.Lock()

    def _resolve ( self, cache, lock, key, build ) :
        if not self.strategy.cached :
            return build()
        found = cache.get( key )
        if found is not None :
            return found
        with lock :
            found = cache.get( key )
            if found is None :
                found = build()
                cache[key] = found
                log.debug( "compiled accessor for %r", key )
            return found

    def getter ( self, kind, attr ) :
        return self._resolve( self.getters, self._getter_lock, ( kind, attr ), lambda : self.strategy.getter( kind, attr ) )

    def setter ( self, kind, attr ) :
        return self._resolve( self.setters, self._setter_lock, ( kind, attr ), lambda : self.strategy.setter( kind, attr ) )

    def invoker ( self, function ) :
        return self._resolve( self.invokers, self._invoker_lock, function, lambda : self.strategy.invoker( function ) )

_default = AccessorCache()

def default () :
    return _default

def set_debug ( enabled ) :
    r"""Selects the debugging (uncached, reflective) strategy for the default cache.
    Meant to be called once at startup."""
    _default.strategy = ReflectiveAccess() if enabled else CompiledAccess()
    log.debug( "accessor strategy: %s", type( _default.strategy ).__name__ )

def debug_enabled () :
    return not _default.strategy.cached
