# Copyright (c) 2025-2026 provide.io llc
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Lua side of the host API.

PRELUDE evaluates to a function taking the Python host object and the addon
name. It strips the standard library down to a safe subset, installs the
script-visible globals and returns a table of internals the sandbox drives
(chunk loader, persisted table, lifecycle targets). The host object is only
ever an upvalue here; scripts cannot reach it.
"""

from __future__ import annotations

# Minor version reported for the built-in libraries; vendored copies with a
# lower minor leave them in place.
BUILTIN_LIBRARY_MINOR = 1000000

PRELUDE = r"""
function(host, addon_name, builtin_minor, root_frame_name)
  local G = _G
  local load, setmetatable, rawget, type, select, tostring, next, ipairs, pairs, error =
        load, setmetatable, rawget, type, select, tostring, next, ipairs, pairs, error
  local concat = table.concat
  local os_time, os_clock, os_date, os_difftime = os.time, os.clock, os.date, os.difftime

  for _, name in ipairs({"io", "debug", "package", "require", "dofile", "loadfile", "python"}) do
    G[name] = nil
  end
  G.os = {time = os_time, clock = os_clock, date = os_date, difftime = os_difftime}
  string.dump = nil

  -- Source text only; precompiled chunks are refused.
  G.load = function(chunk, chunkname, mode, env)
    return load(chunk, chunkname, "t", env or G)
  end

  local internals = {}

  G.print = function(...)
    local parts = {}
    for i = 1, select("#", ...) do
      parts[i] = tostring((select(i, ...)))
    end
    host.print(concat(parts, "\t"))
  end

  -- frames -----------------------------------------------------------------

  G[root_frame_name] = {__name = root_frame_name}

  local Frame = {}
  Frame.__index = Frame

  local function relative_id(rel)
    if type(rel) == "table" then
      return rawget(rel, "__id")
    end
    return nil
  end

  function Frame:GetID() return self.__id end
  function Frame:SetSize(width, height) host.frame_set_size(self.__id, width, height) end
  function Frame:SetWidth(width) host.frame_set_size(self.__id, width, nil) end
  function Frame:SetHeight(height) host.frame_set_size(self.__id, nil, height) end
  function Frame:GetWidth() return host.frame_get(self.__id, "width") end
  function Frame:GetHeight() return host.frame_get(self.__id, "height") end
  function Frame:GetLeft() return host.frame_get(self.__id, "x") end
  function Frame:GetTop() return host.frame_get(self.__id, "y") end
  function Frame:Show() host.frame_set_visible(self.__id, true) end
  function Frame:Hide() host.frame_set_visible(self.__id, false) end
  function Frame:IsShown() return host.frame_get(self.__id, "visible") end
  function Frame:SetText(text) host.frame_set_text(self.__id, text) end
  function Frame:GetText() return host.frame_get(self.__id, "text") or "" end
  function Frame:SetAlpha(alpha) host.frame_set_alpha(self.__id, alpha) end
  function Frame:SetFontSize(size) host.frame_set_font_size(self.__id, size) end
  function Frame:SetScript(script, handler) host.frame_set_script(self.__id, script, handler) end
  function Frame:SetBackdropTexture(path) host.frame_set_texture(self.__id, path, nil, false) end

  -- SetPoint(x, y)
  -- SetPoint(point, x, y)
  -- SetPoint(point, relativeTo [, relativePoint], x, y)
  function Frame:SetPoint(a, b, c, d, e)
    if type(a) == "number" then
      return host.frame_set_position(self.__id, a, b or 0)
    end
    if type(b) == "number" or b == nil then
      return host.frame_set_anchor(self.__id, a, nil, a, b or 0, c or 0)
    end
    local rel_point, x, y = c, d, e
    if type(c) == "number" then
      rel_point, x, y = a, c, d
    end
    host.frame_set_anchor(self.__id, a, relative_id(b), rel_point or a, x or 0, y or 0)
  end

  -- SetBackdrop("Red" | "#RRGGBB") or
  -- SetBackdrop({texture|bgFile = path, ninepatch = {left, right, top, bottom} | edgeSize = n, tile = bool})
  function Frame:SetBackdrop(desc)
    if type(desc) == "string" then
      return host.frame_set_color(self.__id, desc)
    end
    if type(desc) ~= "table" then
      error("Usage: frame:SetBackdrop(color | {texture = path, ...})", 2)
    end
    local texture = desc.texture or desc.bgFile
    if texture == nil then
      error("SetBackdrop: no texture given", 2)
    end
    local insets = nil
    local np = desc.ninepatch
    if type(np) == "table" then
      insets = {np.left or 0, np.right or 0, np.top or 0, np.bottom or 0}
    elseif type(desc.edgeSize) == "number" and desc.edgeSize > 0 then
      insets = {desc.edgeSize, desc.edgeSize, desc.edgeSize, desc.edgeSize}
    end
    host.frame_set_texture(self.__id, texture, insets, desc.tile == true)
  end

  local handles = {}

  -- One script-side table per frame id; a name also binds it as a global.
  function internals.frame_handle(id, name)
    local frame = handles[id]
    if frame == nil then
      frame = setmetatable({__id = id}, Frame)
      handles[id] = frame
    end
    if type(name) == "string" and name ~= "" then
      G[name] = frame
    end
    return frame
  end

  local function CreateFrame(frame_type, name)
    if type(name) ~= "string" or name == "" then
      name = nil
    end
    return internals.frame_handle(host.create_frame(name), name)
  end

  local function RegisterEvent(event, handler)
    if type(event) ~= "string" or type(handler) ~= "function" then
      error("Usage: RegisterEvent(event, handler)", 2)
    end
    host.register_event(event, handler)
  end

  local function GetTime()
    return host.get_time()
  end

  G.CreateFrame = CreateFrame
  G.RegisterEvent = RegisterEvent
  G.GetTime = GetTime
  G.WoW = {CreateFrame = CreateFrame, RegisterEvent = RegisterEvent, GetTime = GetTime}

  -- persisted variables ----------------------------------------------------

  local backing = {}
  local proxies = setmetatable({}, {__mode = "k"})

  local function unwrap(value)
    if type(value) == "table" and proxies[value] then
      return proxies[value]
    end
    return value
  end

  local function wrap(target)
    local proxy = {}
    proxies[proxy] = target
    return setmetatable(proxy, {
      __index = function(_, key)
        local value = target[key]
        if type(value) == "table" then
          return wrap(value)
        end
        return value
      end,
      __newindex = function(_, key, value)
        target[key] = unwrap(value)
        host.persisted_changed()
      end,
      __pairs = function()
        return function(_, key)
          local k, v = next(target, key)
          if type(v) == "table" then
            v = wrap(v)
          end
          return k, v
        end, proxy, nil
      end,
      __len = function() return #target end,
    })
  end

  G.SavedVariables = wrap(backing)
  internals.persisted = backing

  function internals.load_persisted(values)
    for key in pairs(backing) do
      backing[key] = nil
    end
    for key, value in pairs(values) do
      backing[key] = value
    end
  end

  -- LibStub and the Ace3 subset --------------------------------------------

  local LibStub = {libs = {}, minors = {}, minor = 2}

  function LibStub:NewLibrary(major, minor)
    minor = tonumber(minor) or tonumber(tostring(minor):match("%d+")) or 0
    local old = self.minors[major]
    if old and old >= minor then
      return nil
    end
    self.minors[major] = minor
    self.libs[major] = self.libs[major] or {}
    return self.libs[major], old
  end

  function LibStub:GetLibrary(major)
    return self.libs[major], self.minors[major]
  end

  function LibStub:IterateLibraries()
    return pairs(self.libs)
  end

  setmetatable(LibStub, {__call = LibStub.GetLibrary})
  G.LibStub = LibStub

  local AceEvent = LibStub:NewLibrary("AceEvent-3.0", builtin_minor)
  local AceAddon = LibStub:NewLibrary("AceAddon-3.0", builtin_minor)
  AceAddon.addons = {}

  local registered = setmetatable({}, {__mode = "k"})
  local lifecycle_targets = {}

  -- Handlers receive (self, event, ...). Re-registering an event replaces the
  -- previous handler for that object.
  function AceEvent:RegisterEvent(event, handler)
    local fn = handler
    if type(handler) == "string" then
      fn = self[handler]
    elseif handler == nil then
      fn = self[event]
    end
    if type(fn) ~= "function" then
      error(("RegisterEvent(%q): handler not found"):format(tostring(event)), 2)
    end
    local object = self
    local tokens = registered[object] or {}
    registered[object] = tokens
    if tokens[event] then
      host.unregister_handler(tokens[event])
    end
    tokens[event] = host.register_event(event, function(...) return fn(object, event, ...) end)
  end

  function AceEvent:UnregisterEvent(event)
    local tokens = registered[self]
    if tokens and tokens[event] then
      host.unregister_handler(tokens[event])
      tokens[event] = nil
    end
  end

  function AceEvent:UnregisterAllEvents()
    local tokens = registered[self]
    if tokens then
      for event, token in pairs(tokens) do
        host.unregister_handler(token)
      end
      registered[self] = nil
    end
  end

  function AceEvent:Embed(target)
    target.RegisterEvent = AceEvent.RegisterEvent
    target.UnregisterEvent = AceEvent.UnregisterEvent
    target.UnregisterAllEvents = AceEvent.UnregisterAllEvents
    return target
  end

  -- NewAddon([object,] name, [mixin, ...])
  function AceAddon:NewAddon(first, ...)
    local object, name, mixins
    if type(first) == "table" then
      object, name, mixins = first, (...), {select(2, ...)}
    else
      object, name, mixins = {}, first, {...}
    end
    if type(name) ~= "string" then
      error("Usage: NewAddon([object,] name, [lib, ...]): 'name' - string expected.", 2)
    end
    if self.addons[name] then
      error(("Usage: NewAddon([object,] name, [lib, ...]): 'name' - Addon '%s' already exists."):format(name), 2)
    end
    object.name = name
    for _, major in ipairs(mixins) do
      local lib = LibStub(major)
      if type(lib) == "table" and type(lib.Embed) == "function" then
        lib:Embed(object)
      end
    end
    AceEvent:Embed(object)
    self.addons[name] = object
    lifecycle_targets[#lifecycle_targets + 1] = object
    return object
  end

  function AceAddon:GetAddon(name, silent)
    local object = self.addons[name]
    if not object and not silent then
      error(("Usage: GetAddon(name): 'name' - Cannot find an AceAddon '%s'."):format(tostring(name)), 2)
    end
    return object
  end

  internals.lifecycle_targets = lifecycle_targets

  -- chunks -----------------------------------------------------------------

  local namespace = {}

  function internals.run_chunk(code, chunkname, first_arg)
    local fn, err = load(code, "=" .. chunkname, "t", G)
    if not fn then
      error(err, 0)
    end
    fn(first_arg or addon_name, namespace)
  end

  return internals
end
"""
